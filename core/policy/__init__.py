"""Classification policy - decides whether to ask, propose or reply."""

from .langchain_policy import LangChainPolicy, build_chat_model
from .types import ClassificationPolicy, Clarify, Decision, Propose, Question, Reply

__all__ = [
    "ClassificationPolicy",
    "Clarify",
    "Decision",
    "LangChainPolicy",
    "Propose",
    "Question",
    "Reply",
    "build_chat_model",
]
