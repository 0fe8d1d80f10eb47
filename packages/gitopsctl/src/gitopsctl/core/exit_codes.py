from __future__ import annotations

OK = 0
ERR_USAGE = 2
ERR_CONFIG = 10
ERR_DRIFT = 11
ERR_IO = 12
ERR_INTERNAL = 99
