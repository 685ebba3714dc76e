import asyncio
import random
import time
from pathlib import Path


class UploadStorage:
    """Writes uploaded PDFs to a directory served as static files."""

    def __init__(self, upload_dir: str, url_prefix: str = "/uploads"):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def ensure_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def new_filename() -> str:
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"pdf-{unique_suffix}.pdf"

    def _write(self, filename: str, data: bytes) -> Path:
        self.ensure_dir()
        path = self.upload_dir / filename
        with open(path, "wb") as f:
            f.write(data)
        return path

    async def save(self, data: bytes) -> str:
        """Store the bytes and return the public URL for them."""
        filename = self.new_filename()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, filename, data)
        return f"{self.url_prefix}/{filename}"
