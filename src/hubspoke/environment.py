"""
hubspoke Environment - Construction Scopes and Environment Resolution

PURPOSE:
    Models the construction tree a topology is defined in and resolves the
    owning account and region for any node of that tree. A scope without a
    declared environment inherits the one of its nearest ancestor; the root
    of a tree without environment resolves to Deferred account and region.

WHO READS ME:
    - controller.py: Resolves its own environment and the one of every scope
      passed to add_hub/add_spoke
    - addressing.py: Keys allocations by scope path
    - definition.py: Builds the scope tree from a definition file

WHO I READ:
    - models.py: Concrete, Deferred, as_identifier, is_unresolved

DEPENDENCIES:
    - hashlib: Stable scope addresses and unique ids
    - re: Sanitizing path components for unique ids

KEY EXPORTS:
    - Environment: account/region pair
    - Scope: node in the construction tree
    - EnvironmentResolver: resolve(scope) -> Environment
    - unique_id(scope): deterministic name derived from the scope path
"""

import hashlib
import re
from dataclasses import dataclass

from hubspoke.models import Deferred, Identifier, as_identifier, is_unresolved

PATH_SEP = "/"
ADDR_PREFIX = "c8"
HASH_LEN = 8

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class Environment:
    """owning account and region of a scope"""

    account: Identifier
    region: Identifier

    @property
    def is_concrete(self) -> bool:
        return not (is_unresolved(self.account) or is_unresolved(self.region))

    def __str__(self) -> str:
        return f"{self.account}/{self.region}"


class Scope:
    """a node in the construction tree

    Children are keyed by id, which must be unique among siblings. An
    environment given to a scope applies to the scope and all of its
    descendants unless a descendant declares its own.
    """

    def __init__(
        self,
        parent: "Scope | None",
        scope_id: str,
        account: "str | Identifier | None" = None,
        region: "str | Identifier | None" = None,
    ):
        if parent is not None and not scope_id:
            raise ValueError("only the root scope may have an empty id")
        if PATH_SEP in scope_id:
            raise ValueError(f"scope id must not contain '{PATH_SEP}': {scope_id}")
        self.parent = parent
        self.id = scope_id
        self.children: dict[str, Scope] = {}
        self.env: Environment | None = None
        if account is not None or region is not None:
            self.env = Environment(
                as_identifier(account, "AWS.AccountId"),
                as_identifier(region, "AWS.Region"),
            )
        if parent is not None:
            if scope_id in parent.children:
                raise ValueError(
                    f"there is already a scope named '{scope_id}' in '{parent.path}'"
                )
            parent.children[scope_id] = self

    @property
    def path(self) -> str:
        parts = [s.id for s in self.ancestors() if s.id]
        return PATH_SEP.join(reversed(parts))

    @property
    def addr(self) -> str:
        """stable address of this scope, derived from its path"""
        digest = hashlib.sha1(self.path.encode("utf-8")).hexdigest()
        return ADDR_PREFIX + digest

    def ancestors(self):
        """this scope followed by its parents up to the root"""
        node: Scope | None = self
        while node is not None:
            yield node
            node = node.parent

    def __repr__(self) -> str:
        return f"Scope({self.path or '<root>'!r})"


def unique_id(scope: Scope) -> str:
    """a name unique within the tree, e.g. "Networkcontroller1A2B3C4D" """
    path = scope.path
    if not path:
        raise ValueError("unique id of the root scope is undefined")
    readable = "".join(_NON_ALNUM.sub("", part) for part in path.split(PATH_SEP))
    digest = hashlib.md5(path.encode("utf-8")).hexdigest()[:HASH_LEN].upper()
    return readable + digest


class EnvironmentResolver:
    """resolves the environment of a scope by walking up its ancestors"""

    def resolve(self, scope: Scope) -> Environment:
        for node in scope.ancestors():
            if node.env is not None:
                return node.env
        return Environment(Deferred("${Token[AWS.AccountId]}"), Deferred("${Token[AWS.Region]}"))
