"""
审计日志服务
与业务写入处于同一事务，由调用方负责提交
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
import json

from sqlalchemy.orm import Session

from frontdesk.models.entities import SystemLog


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _dumps(value: Optional[Dict[str, Any]]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=_default, ensure_ascii=False)


class AuditService:
    """审计日志服务"""

    def __init__(self, db: Session):
        self.db = db

    def record(self, operator_id: Optional[int], action: str, entity_type: str,
               entity_id: Optional[int], old_value: Optional[Dict[str, Any]] = None,
               new_value: Optional[Dict[str, Any]] = None) -> SystemLog:
        """写入一条审计记录（不提交）"""
        log = SystemLog(
            operator_id=operator_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_value=_dumps(old_value),
            new_value=_dumps(new_value),
        )
        self.db.add(log)
        return log

    def get_logs(self, entity_type: Optional[str] = None,
                 entity_id: Optional[int] = None) -> List[SystemLog]:
        """查询审计记录"""
        query = self.db.query(SystemLog)
        if entity_type:
            query = query.filter(SystemLog.entity_type == entity_type)
        if entity_id is not None:
            query = query.filter(SystemLog.entity_id == entity_id)
        return query.order_by(SystemLog.id).all()
