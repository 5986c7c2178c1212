from .system import ASSISTANT_SYSTEM_TEMPLATE, DEFAULT_SYSTEM_PROMPT  # noqa: F401
