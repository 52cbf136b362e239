# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Security pattern catalog."""

from .catalog import KNOWLEDGE_CONTEXTS, PatternCatalog, default_catalog
from .knowledge import BUILTIN_EXAMPLES, BUILTIN_KNOWLEDGE
from .patterns import BUILTIN_PATTERNS, INPUT_VALIDATION_PATTERNS, SQL_INJECTION_PATTERNS, XSS_PATTERNS
from .rules import BUILTIN_RULES

__all__ = [
    "BUILTIN_EXAMPLES",
    "BUILTIN_KNOWLEDGE",
    "BUILTIN_PATTERNS",
    "BUILTIN_RULES",
    "INPUT_VALIDATION_PATTERNS",
    "KNOWLEDGE_CONTEXTS",
    "PatternCatalog",
    "SQL_INJECTION_PATTERNS",
    "XSS_PATTERNS",
    "default_catalog",
]
