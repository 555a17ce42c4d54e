from collections.abc import Iterable

from .config import RouteRule

# Basic prefix matching. Deliberately not segment-aware: '/openainew' is
# served by the '/openai' rule. Tightening this changes which upstream
# receives edge-case paths.


class Router:
    def __init__(self, routes: Iterable[RouteRule]):
        self.routes: tuple[RouteRule, ...] = tuple(routes)

    @property
    def prefixes(self) -> list[str]:
        return [rule.prefix for rule in self.routes]

    def resolve(self, path: str) -> RouteRule | None:
        """Return the first rule, in declaration order, whose prefix starts `path`."""
        for rule in self.routes:
            if path.startswith(rule.prefix):
                return rule
        return None

    @staticmethod
    def strip(rule: RouteRule, path: str) -> str:
        return path[len(rule.prefix):] or '/'
