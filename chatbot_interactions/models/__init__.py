"""Expose commonly used model classes at the package level.

Importing these classes here allows consumers to write concise imports like::

    from chatbot_interactions.models import Interaction, Exchange, PersistedRecord
"""

from .agent import Agent  # noqa: F401
from .dashboard import ConversationRow, ConversationsView  # noqa: F401
from .enums import (  # noqa: F401
    AgentType,
    InteractionStatus,
    PermissionLevel,
    RecordType,
    RecordVisibility,
)
from .exchange import Exchange, ExchangesSettings  # noqa: F401
from .interaction import Interaction, UserInteraction  # noqa: F401
from .message import Message  # noqa: F401
from .record import (  # noqa: F401
    LocalContext,
    Member,
    NewRecord,
    PersistedRecord,
    get_default_user_interaction_record,
)
