"""
集中定义所有操作码常量
"""

# 房间管理（仅管理员）
ROOM_CREATE = "room:create"
ROOM_UPDATE = "room:update"
ROOM_DELETE = "room:delete"
ROOM_STATUS = "room:status"

# 客人管理
GUEST_CREATE = "guest:create"
GUEST_UPDATE = "guest:update"
GUEST_DELETE = "guest:delete"

# 预订管理
BOOKING_CREATE = "booking:create"
BOOKING_CHECKOUT = "booking:checkout"
BOOKING_CANCEL = "booking:cancel"

# 需要管理员角色的操作
ADMIN_ACTIONS = frozenset({ROOM_CREATE, ROOM_UPDATE, ROOM_DELETE, ROOM_STATUS})

# 任意在职员工可执行的创建操作（记录的创建人即操作人）
CREATE_ACTIONS = frozenset({GUEST_CREATE, BOOKING_CREATE})

# 仅记录创建人可执行的操作
OWNER_ACTIONS = frozenset({
    GUEST_UPDATE, GUEST_DELETE,
    BOOKING_CHECKOUT, BOOKING_CANCEL,
})
