from __future__ import annotations

import uvicorn

from battleid.config import load_settings


def main() -> None:
    settings = load_settings()
    uvicorn.run("battleid.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
