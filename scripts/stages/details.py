"""Registry metadata for each discovered package."""

from typing import Any
from urllib.parse import quote

from stages.base import BaseStage, join_all, progress


class DetailFetcher(BaseStage):
    """Fetch the full registry document of every candidate package."""

    stage_name = "details"

    PACKAGE_URL = "https://registry.npmjs.org/{name}"

    def run(self, names: list[str]) -> list[dict[str, Any]]:
        return self.fetch_all(names)

    def fetch(self, name: str) -> dict[str, Any]:
        """Fetch one package document without its readme.

        Scoped names keep their ``@`` but have the ``/`` escaped, which is the
        form the registry expects.

        Raises:
            requests.RequestException: On transport errors or non-2xx status.
            ValueError: If the body is not valid JSON.
        """
        url = self.PACKAGE_URL.format(name=quote(name, safe="@"))
        document = self.get_json(url)
        # Readmes are large and unused downstream
        document.pop("readme", None)
        return document

    def fetch_all(self, names: list[str]) -> list[dict[str, Any]]:
        """Fetch every document concurrently; any failure fails the batch."""
        progress(
            f"executing npm view to get detailed info about the extensions ({len(names)})"
        )
        documents = join_all(self.fetch, names)
        progress(f"got all view results ({len(documents)})")
        return documents
