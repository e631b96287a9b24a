"""
DynamoDB Tools

Persistence for recruit and operator records in a single DynamoDB table.
Recruit writes are last-write-wins; the version counter is kept for audit.
"""

from datetime import datetime, timezone
from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
import structlog

from recruiting.shared.config import get_settings
from recruiting.shared.exceptions import (
    DynamoDBError,
    OperatorNotFoundError,
    RecruitNotFoundError,
)
from recruiting.shared.models.operator import Operator, OperatorRole
from recruiting.shared.models.recruit import Recruit

log = structlog.get_logger()


def _get_table():
    """Get DynamoDB table resource."""
    settings = get_settings()
    dynamodb = boto3.resource("dynamodb", **settings.dynamodb_config)
    return dynamodb.Table(settings.table_name)


def _now() -> int:
    return int(datetime.now(timezone.utc).timestamp())


def _wrap(operation: str, e: ClientError, **context: Any) -> DynamoDBError:
    settings = get_settings()
    log.error(f"dynamodb_{operation}_failed", error=str(e), **context)
    return DynamoDBError(
        operation=operation,
        table_name=settings.table_name,
        error_message=str(e),
    )


def _query_all(query_params: dict[str, Any]) -> list[dict[str, Any]]:
    table = _get_table()
    response = table.query(**query_params)
    items = response.get("Items", [])

    while "LastEvaluatedKey" in response:
        query_params["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        response = table.query(**query_params)
        items.extend(response.get("Items", []))

    return items


# =====================================================
# Recruit Record Operations
# =====================================================


def load_recruit(recruit_id: str, *, consistent_read: bool = True) -> Recruit | None:
    """
    Load a recruit record.

    Args:
        recruit_id: Recruit identifier
        consistent_read: Use strongly consistent read (default True)

    Returns:
        Recruit if found, None otherwise

    Raises:
        DynamoDBError: On DynamoDB operation failure
    """
    table = _get_table()

    log.debug("loading_recruit", recruit_id=recruit_id)

    try:
        response = table.get_item(
            Key={"PK": f"RECRUIT#{recruit_id}", "SK": "METADATA"},
            ConsistentRead=consistent_read,
        )
    except ClientError as e:
        raise _wrap("get", e, recruit_id=recruit_id) from e

    item = response.get("Item")
    if not item:
        log.debug("recruit_not_found", recruit_id=recruit_id)
        return None

    return Recruit.from_dynamodb(item)


def create_recruit_record(recruit: Recruit) -> Recruit:
    """
    Create a new recruit record.

    Idempotent: if a record with the same id exists, the stored record
    is returned unchanged.

    Args:
        recruit: Recruit to store

    Returns:
        Created or existing Recruit

    Raises:
        DynamoDBError: On DynamoDB operation failure
    """
    table = _get_table()

    now = _now()
    if recruit.created_at is None:
        recruit = recruit.model_copy(update={"created_at": now, "updated_at": now})

    log.info(
        "creating_recruit_record",
        recruit_id=recruit.recruit_id,
        assigned_to=recruit.assigned_to,
    )

    try:
        table.put_item(
            Item=recruit.to_dynamodb(),
            ConditionExpression="attribute_not_exists(PK)",
        )
        log.info("recruit_record_created", recruit_id=recruit.recruit_id)
        return recruit
    except ClientError as e:
        if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
            log.info("recruit_record_already_exists", recruit_id=recruit.recruit_id)
            existing = load_recruit(recruit.recruit_id)
            if existing:
                return existing
            raise RecruitNotFoundError(recruit.recruit_id) from e
        raise _wrap("put", e, recruit_id=recruit.recruit_id) from e


def save_recruit(recruit: Recruit) -> Recruit:
    """
    Write a recruit record (last write wins).

    The caller passes a Recruit produced by `with_updates` / `with_slot`,
    which has already bumped the version.

    Raises:
        DynamoDBError: On DynamoDB operation failure
    """
    table = _get_table()

    log.info(
        "saving_recruit",
        recruit_id=recruit.recruit_id,
        stage=recruit.stage.value,
        version=recruit.version,
    )

    try:
        table.put_item(Item=recruit.to_dynamodb())
    except ClientError as e:
        raise _wrap("put", e, recruit_id=recruit.recruit_id) from e

    return recruit


def delete_recruit_record(recruit_id: str) -> bool:
    """
    Delete a recruit record.

    Returns:
        True if a record was deleted, False if it did not exist
    """
    table = _get_table()

    log.info("deleting_recruit_record", recruit_id=recruit_id)

    try:
        response = table.delete_item(
            Key={"PK": f"RECRUIT#{recruit_id}", "SK": "METADATA"},
            ReturnValues="ALL_OLD",
        )
    except ClientError as e:
        raise _wrap("delete", e, recruit_id=recruit_id) from e

    return "Attributes" in response


def list_recruits_by_owner(owner_id: str) -> list[Recruit]:
    """
    List recruits owned by an operator.

    Uses GSI1 keyed on OWNER#<owner_id>.
    """
    settings = get_settings()

    log.debug("listing_recruits_by_owner", owner_id=owner_id)

    try:
        items = _query_all({
            "IndexName": settings.index_name,
            "KeyConditionExpression": Key("GSI1PK").eq(f"OWNER#{owner_id}"),
        })
    except ClientError as e:
        raise _wrap("query", e, owner_id=owner_id) from e

    return [Recruit.from_dynamodb(item) for item in items]


# =====================================================
# Operator Record Operations
# =====================================================


def create_operator(operator: Operator) -> Operator:
    """
    Create or replace an operator profile.

    Account provisioning lives outside this service; this is used for
    seeding and tests.
    """
    table = _get_table()

    if operator.created_at is None:
        operator = operator.model_copy(update={"created_at": _now()})

    log.info(
        "creating_operator",
        operator_id=operator.operator_id,
        role=operator.role.value,
    )

    try:
        table.put_item(Item=operator.to_dynamodb())
    except ClientError as e:
        raise _wrap("put", e, operator_id=operator.operator_id) from e

    return operator


def load_operator(operator_id: str) -> Operator | None:
    """Load an operator profile, or None if unknown."""
    table = _get_table()

    try:
        response = table.get_item(
            Key={"PK": f"OPERATOR#{operator_id}", "SK": "PROFILE"},
            ConsistentRead=True,
        )
    except ClientError as e:
        raise _wrap("get", e, operator_id=operator_id) from e

    item = response.get("Item")
    if not item:
        return None
    return Operator.from_dynamodb(item)


def require_operator(operator_id: str) -> Operator:
    """
    Load an operator profile.

    Raises:
        OperatorNotFoundError: If the operator does not exist
    """
    operator = load_operator(operator_id)
    if operator is None:
        raise OperatorNotFoundError(operator_id)
    return operator


def list_operators_by_role(role: OperatorRole) -> list[Operator]:
    """List operators holding a role (GSI1 keyed on ROLE#<role>)."""
    settings = get_settings()

    try:
        items = _query_all({
            "IndexName": settings.index_name,
            "KeyConditionExpression": Key("GSI1PK").eq(f"ROLE#{role.value}"),
        })
    except ClientError as e:
        raise _wrap("query", e, role=role.value) from e

    return [Operator.from_dynamodb(item) for item in items]


def list_operators_by_supervisor(supervisor_id: str) -> list[Operator]:
    """
    List operators reporting directly to a manager.

    Walks the role partitions of GSI1; the team is small enough that a
    dedicated supervisor index is not kept.
    """
    return [
        operator
        for role in OperatorRole
        for operator in list_operators_by_role(role)
        if operator.supervisor_id == supervisor_id
    ]
