"""School Management API.

Role-based CRUD API for schools, classes, attendance, scores, academic
results and in-app notifications.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
