# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""jsonvault: a login-gated store for a single shared JSON document."""

__version__ = "0.1.0"
