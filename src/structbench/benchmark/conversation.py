"""Fixed team conversation that every benchmark prompt is grounded on.

Five team members discuss adding an AI assistant to their project
tracking product. The content is deterministic so runs are comparable.
"""

from __future__ import annotations

from dataclasses import dataclass

from structbench.adapters.base import Message


@dataclass(frozen=True)
class Participant:
    name: str
    role: str
    expertise: str


@dataclass(frozen=True)
class ConversationMessage:
    participant: str
    message: str


PARTICIPANTS: tuple[Participant, ...] = (
    Participant("Sarah", "Tech Lead", "System architecture and technical strategy"),
    Participant("Marcus", "Backend Developer", "APIs, databases and service integrations"),
    Participant("Priya", "Frontend Developer", "React, UX implementation and accessibility"),
    Participant("David", "Product Manager", "Roadmap, customer research and prioritization"),
    Participant("Elena", "DevOps Engineer", "Infrastructure, observability and cost control"),
)

CONVERSATION: tuple[ConversationMessage, ...] = (
    ConversationMessage(
        "David",
        "Customers keep asking for help summarizing long task threads. I'd like us to "
        "ship an AI assistant inside the project view this quarter.",
    ),
    ConversationMessage(
        "Sarah",
        "I'm open to it, but we need to decide between a hosted model API and running "
        "something ourselves. The choice drives most of the architecture.",
    ),
    ConversationMessage(
        "Marcus",
        "A hosted API is far less work. We'd add one service that assembles the task "
        "context, calls the provider and stores the summary next to the thread.",
    ),
    ConversationMessage(
        "Elena",
        "Hosted is fine with me as long as we cap spend. I want per-workspace rate limits "
        "and a monthly budget alert before anything goes to production.",
    ),
    ConversationMessage(
        "Priya",
        "On the frontend I'd stream the response into a side panel. Users should be able "
        "to regenerate, copy the summary, and flag bad answers.",
    ),
    ConversationMessage(
        "David",
        "Flagging is important. Enterprise customers will ask how we handle mistakes and "
        "whether their data is used for training.",
    ),
    ConversationMessage(
        "Sarah",
        "Then we pick a provider with a zero-retention option and redact emails and "
        "access tokens from the context before it leaves our network.",
    ),
    ConversationMessage(
        "Marcus",
        "I can put the redaction in the context builder. For temperature I'd keep it low, "
        "maybe 0.2, since we want faithful summaries rather than creative ones.",
    ),
    ConversationMessage(
        "Elena",
        "Let's also log token usage per request so finance can see the cost per "
        "workspace. I'll wire it into the existing metrics pipeline.",
    ),
    ConversationMessage(
        "Priya",
        "I'm a bit skeptical about launching to everyone at once. A beta flag for a few "
        "workspaces would let us tune the prompts with real feedback.",
    ),
    ConversationMessage(
        "David",
        "Agreed, beta first. If the feedback is good we make it generally available and "
        "add action item extraction as the next feature.",
    ),
    ConversationMessage(
        "Sarah",
        "So the plan is a hosted model behind our own service, redaction, low temperature, "
        "budget guardrails, and a beta rollout. Marcus owns the service, Priya the panel, "
        "Elena the guardrails, and David the beta cohort.",
    ),
)


def format_conversation() -> str:
    """Render the conversation as "Name: message" lines separated by blank lines."""
    return "\n\n".join(f"{msg.participant}: {msg.message}" for msg in CONVERSATION)


def get_conversation_messages() -> list[Message]:
    """Return the conversation wrapped in a single user message."""
    return [
        Message(
            role="user",
            content=(
                "Here is a conversation between team members:\n\n"
                f"{format_conversation()}"
            ),
        )
    ]
