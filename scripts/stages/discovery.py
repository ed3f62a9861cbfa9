"""Keyword discovery against the npm registry search API."""

from stages.base import BaseStage, progress


class KeywordDiscovery(BaseStage):
    """Find package names tagged with a registry keyword."""

    stage_name = "discovery"

    SEARCH_URL = "https://registry.npmjs.org/-/v1/search"

    # Largest page the search endpoint serves
    PAGE_SIZE = 250

    def run(self, keyword: str) -> list[str]:
        return self.names(keyword)

    def names(self, keyword: str) -> list[str]:
        """Collect every package name tagged with ``keyword``.

        Args:
            keyword: Registry keyword, e.g. ``brackets-extension``.

        Returns:
            Sorted, deduplicated package names.

        Raises:
            requests.RequestException: On transport errors or non-2xx status.
            ValueError: If a page is not valid JSON.
        """
        progress(f"getting packages with keyword: {keyword}")

        found: set[str] = set()
        offset = 0
        while True:
            page = self.get_json(
                self.SEARCH_URL,
                params={
                    "text": f"keywords:{keyword}",
                    "size": self.PAGE_SIZE,
                    "from": offset,
                },
            )
            objects = page.get("objects", [])
            for obj in objects:
                name = obj.get("package", {}).get("name")
                if name:
                    found.add(name)

            offset += len(objects)
            total = page.get("total", 0)
            if not objects or offset >= total:
                break

        return sorted(found)
