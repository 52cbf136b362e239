# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

from .ordered import OrderedSet, merge_unique

__all__ = ["OrderedSet", "merge_unique"]
