"""
Harness Generator Package
=========================
Modules for generating fuzz harnesses with AI.
"""

from .conversation import ConversationHistory, Message, Role
from .generator import GenerativeClient, GeneratorConfig, HarnessGenerator
from .prompts import (
    TRAINING_PROMPTS,
    HarnessRequest,
    build_generation_prompt,
    build_repair_prompt,
)

__all__ = [
    "ConversationHistory",
    "Message",
    "Role",
    "GenerativeClient",
    "GeneratorConfig",
    "HarnessGenerator",
    "TRAINING_PROMPTS",
    "HarnessRequest",
    "build_generation_prompt",
    "build_repair_prompt",
]
