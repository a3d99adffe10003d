"""Event type constants published by the sheet services."""


class EventTypes:
    """Event type string constants"""

    # conditions
    CONDITION_ADDED = "condition_added"
    CONDITION_REMOVED = "condition_removed"

    # items
    ITEM_CREATED = "item_created"
    ITEM_DELETED = "item_deleted"
    ITEM_STATE_CHANGED = "item_state_changed"

    # sheet
    SHEET_RECOMPUTED = "sheet_recomputed"
