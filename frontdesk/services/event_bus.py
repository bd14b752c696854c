"""
事件总线
预订服务在事务提交之后发布领域事件，订阅方（运营日志、清洁提醒）互相隔离。
"""
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, DefaultDict, Dict, List, Optional, Union
import logging
import threading
import uuid

logger = logging.getLogger(__name__)

Handler = Callable[["Event"], None]


def _key(event_type: Union[str, Enum]) -> str:
    return event_type.value if isinstance(event_type, Enum) else event_type


@dataclass
class Event:
    """领域事件"""
    event_type: str
    timestamp: datetime
    data: Dict[str, Any]
    source: str  # 发布方服务名
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class EventBus:
    """
    进程内同步事件总线

    处理器按订阅顺序依次执行。某个处理器抛出异常时记录错误日志并继续下一个：
    事件发布时业务事务已经提交，处理器失败不能再影响业务结果。
    """

    def __init__(self, history_size: int = 100):
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._history: deque = deque(maxlen=history_size)
        self._lock = threading.RLock()

    def subscribe(self, event_type: Union[str, Enum], handler: Handler) -> None:
        """订阅事件；同一处理器重复订阅只生效一次"""
        with self._lock:
            handlers = self._handlers[_key(event_type)]
            if handler not in handlers:
                handlers.append(handler)
                logger.debug(f"{handler.__name__} subscribed to {_key(event_type)}")

    def unsubscribe(self, event_type: Union[str, Enum], handler: Handler) -> None:
        with self._lock:
            handlers = self._handlers.get(_key(event_type), [])
            if handler in handlers:
                handlers.remove(handler)

    def subscribers(self, event_type: Union[str, Enum]) -> List[str]:
        """某类事件的处理器名称"""
        with self._lock:
            return [h.__name__ for h in self._handlers.get(_key(event_type), [])]

    def publish(self, event: Event) -> None:
        key = _key(event.event_type)
        with self._lock:
            self._history.append(event)
            handlers = list(self._handlers.get(key, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Handler {handler.__name__} failed on {key}: {e}", exc_info=True)

    def get_history(self, event_type: Optional[Union[str, Enum]] = None,
                    limit: int = 50) -> List[Event]:
        """最近发布的事件，最新的在前"""
        with self._lock:
            events = list(reversed(self._history))
        if event_type is not None:
            events = [e for e in events if _key(e.event_type) == _key(event_type)]
        return events[:limit]

    def clear_subscribers(self) -> None:
        with self._lock:
            self._handlers.clear()

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()


# 全局事件总线实例
event_bus = EventBus()
