"""
Upload and Confirm

Fills a form, attaches an inline file and reads back the confirmation,
all from one batch of JSON chains.

Usage:
    python examples/upload_and_confirm.py https://example.com/apply
"""

import asyncio
import base64
import sys

from bromato import FileUploadStager, execute_locator_chain
from bromato.core.browser import open_page
from bromato.core.config import BromatoConfig

CHAINS = [
    [
        {"type": "getBy", "operation": "label", "value": "Full name"},
        {"type": "action", "operation": "fill", "value": "Ada Lovelace"},
    ],
    [
        {"type": "locator", "value": "input[type=file]"},
        {"type": "action", "operation": "setInputFiles", "value": {
            "extension": "txt",
            "content": base64.b64encode(b"Notes on the Analytical Engine").decode(),
        }},
    ],
    [
        {"type": "getBy", "operation": "role", "value": "button", "options": {"name": "regex:^Submit"}},
        {"type": "action", "operation": "click"},
    ],
    [
        {"type": "getBy", "operation": "role", "value": "status"},
        {"type": "action", "operation": "waitFor", "value": "visible"},
        {"type": "getter", "operation": "textContent"},
    ],
]


async def main(url: str) -> None:
    config = BromatoConfig.from_env(headless=True)
    async with open_page(config) as page:
        await page.goto(url)
        confirmation = await execute_locator_chain(
            page, CHAINS, middlewares=[FileUploadStager(config.upload_dir)], config=config
        )
    print(f"Confirmation: {confirmation}")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "https://example.com"))
