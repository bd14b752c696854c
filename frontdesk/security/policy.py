"""
授权策略

核心操作在任何写入之前调用 Authorizer.can()，拒绝时抛出 AuthorizationError。
策略与数据库中的角色分配（user_roles）一致：
- 房间的增删改和房态修改仅限管理员
- 客人、预订只能由创建人修改（owner-only）
"""
from typing import Any, Optional, Protocol
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.exceptions import AuthorizationError, StorageError
from frontdesk.models.entities import Staff, StaffRole, UserRole
from frontdesk.security import permissions

logger = logging.getLogger(__name__)


class Authorizer(Protocol):
    """授权协作方协议"""

    def has_role(self, actor_id: int, role: StaffRole) -> bool:
        ...

    def can(self, actor: Staff, action: str, resource: Any = None) -> bool:
        ...


class PolicyAuthorizer:
    """基于角色分配和创建人的授权实现"""

    def __init__(self, db: Session):
        self.db = db

    def has_role(self, actor_id: int, role: StaffRole) -> bool:
        """检查员工是否拥有指定角色"""
        try:
            return self.db.query(UserRole).filter(
                UserRole.staff_id == actor_id,
                UserRole.role == role
            ).first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Role lookup failed for staff {actor_id}: {e}", exc_info=True)
            raise StorageError("权限查询失败，请稍后重试") from e

    def can(self, actor: Optional[Staff], action: str, resource: Any = None) -> bool:
        """
        判断操作人能否对资源执行操作

        Args:
            actor: 操作人
            action: 操作码（见 permissions）
            resource: 目标记录；owner-only 操作依据其 created_by 判定
        """
        if actor is None or not actor.is_active:
            return False

        if action in permissions.ADMIN_ACTIONS:
            return self.has_role(actor.id, StaffRole.ADMIN)

        if action in permissions.CREATE_ACTIONS:
            return True

        if action in permissions.OWNER_ACTIONS:
            owner_id = getattr(resource, "created_by", None)
            return owner_id is not None and owner_id == actor.id

        logger.warning(f"Unknown action '{action}' denied for staff {actor.id}")
        return False


def authorize(authorizer: Authorizer, actor: Optional[Staff], action: str,
              resource: Any = None) -> None:
    """授权失败时抛出 AuthorizationError"""
    if not authorizer.can(actor, action, resource):
        actor_id = actor.id if actor is not None else None
        logger.warning(f"Permission denied: staff={actor_id} action={action}")
        if action in permissions.ADMIN_ACTIONS:
            raise AuthorizationError("权限不足：该操作仅限管理员", {"action": action})
        if action in permissions.OWNER_ACTIONS:
            raise AuthorizationError("权限不足：只能操作自己创建的记录", {"action": action})
        raise AuthorizationError("权限不足", {"action": action})
