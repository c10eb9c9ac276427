"""Telegram gateway constants."""

# Inline button callback actions ({"action": ..., "taskId": "<id>"})
ACTION_ACCEPT = "accept_task"
ACTION_REJECT = "reject_task"
ACTION_COMPLETE = "complete_task"
CALLBACK_ACTIONS = {ACTION_ACCEPT, ACTION_REJECT, ACTION_COMPLETE}

ALLOWED_UPDATES = ["message", "callback_query"]

PARSE_MODE_MARKDOWN = "Markdown"

INVOICE_PDF_NAME = "Rechnung_{invoice_number}.pdf"

# Polling loop backoff after errors (seconds)
POLL_BACKOFF_START = 1.0
POLL_BACKOFF_MAX = 60.0

# Telegram error codes meaning the token is unusable
AUTH_ERROR_CODES = {401, 404}
