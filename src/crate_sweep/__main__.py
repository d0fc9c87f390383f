# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

import sys

from crate_sweep.cli import main

if __name__ == "__main__":  # pragma: no cover - exercised via subprocess tests
    sys.exit(main(sys.argv[1:]))
