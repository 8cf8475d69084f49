import platform
import time
from typing import Any, Dict

from teamsg.metrics import BUILD_VERSION, GIT_SHA


async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "version": BUILD_VERSION,
        "git": GIT_SHA,
        "ts": time.time(),
        "runtime": {
            "python": platform.python_version(),
        },
    }
