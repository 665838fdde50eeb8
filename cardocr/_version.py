# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

__version__ = "0.3.0"
