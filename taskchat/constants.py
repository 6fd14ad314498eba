# taskchat/constants.py

PRIORITY_MAP = {
    "low": "low",
    "medium": "medium",
    "normal": "medium",
    "high": "high",
    "urgent": "high",
}

STATUS_MAP = {
    "today": "today",
    "upcoming": "upcoming",
    "done": "done",
    "completed": "done",
}

OPERATION_MAP = {
    "add": "add",
    "create": "add",
    "update": "update",
    "edit": "update",
    "delete": "delete",
    "remove": "delete",
    "deletelist": "deleteList",
    "delete_list": "deleteList",
}

CONFIRM_TOKENS = {"yes", "ok", "okay", "confirm", "sure", "delete", "go"}
CANCEL_TOKENS = {"no", "cancel", "canceled", "cancelled", "stop", "keep"}

DELETE_KEYWORDS = {"delete", "remove", "get rid of", "clear"}

# ```json { ... } ```
FENCED_PAYLOAD_PATTERN = r"```[ \t]*json[ \t]*\r?\n?(.*?)```"

LIST_COLLECTION = "task_lists"
