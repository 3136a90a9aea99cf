"""Match lists: persisted rule sets evaluated against live connections.

A :class:`MatchList` keeps three structures in sync: the ordered rules, an
index keyed by ``(type, value)`` and the set of numeric app identities for
APP rules. All three are guarded by one lock so the classification path
never sees them diverge. Listeners are called after the lock is released.
"""

from __future__ import annotations

import logging
import re
import threading
from collections import Counter
from collections.abc import Callable, Iterator

from matchlist.apps import UID_NO_FILTER, AppsResolver
from matchlist.connection import ConnectionDescriptor
from matchlist.rules.domains import clean_domain, second_level_domain
from matchlist.rules.labels import rule_label
from matchlist.rules.models import AppExemptions, ListDescriptor, Rule, RuleType
from matchlist.rules.serializer import (
    MalformedDocumentError,
    parse_document,
    serialize_rules,
)
from matchlist.storage.prefs import PreferenceStore

logger = logging.getLogger(__name__)

ListChangeListener = Callable[[], None]

_RuleKey = tuple[RuleType, str]

# uid-based APP values written by older releases
_LEGACY_UID_RE = re.compile(r"[+-]?[0-9]+")


class MatchList:
    """An ordered, duplicate-free set of rules bound to one preference slot.

    The list is loaded from *store* on construction. Mutations are not
    persisted until :meth:`save` is called.
    """

    def __init__(
        self,
        store: PreferenceStore,
        pref_name: str,
        resolver: AppsResolver,
    ) -> None:
        self._store = store
        self._pref_name = pref_name
        self._resolver = resolver
        self._lock = threading.Lock()
        self._listeners: list[ListChangeListener] = []
        self._format_migration = False

        # --- Guarded by _lock ---
        self._rules: list[Rule] = []
        self._index: dict[_RuleKey, Rule] = {}
        # package name -> uid resolved when the APP rule was added
        self._app_uids: dict[str, int] = {}
        # uid -> number of APP rules resolved to it
        self._uids: Counter[int] = Counter()

        self.reload()

    @property
    def pref_name(self) -> str:
        return self._pref_name

    @property
    def resolver(self) -> AppsResolver:
        return self._resolver

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def reload(self) -> bool:
        """Reload the rules from the store, rewriting legacy data once.

        Returns False if the stored document is malformed; the current rules
        are kept in that case.
        """
        serialized = self._store.read(self._pref_name) or ""
        if not serialized:
            self.clear()
            return True

        loaded = self.from_json(serialized)
        if self._format_migration:
            logger.info("Migration of %s completed", self._pref_name)
            self.save()
            self._format_migration = False
        return loaded

    def save(self) -> None:
        self._store.write(self._pref_name, self.to_json(pretty=False))

    def to_json(self, pretty: bool = False) -> str:
        with self._lock:
            rules = list(self._rules)
        return serialize_rules(rules, pretty=pretty)

    def from_json(self, text: str) -> bool:
        """Replace the rules with the ones in a serialized document.

        Legacy entries are converted to the current format and flag the list
        for re-saving. Returns False, leaving the list unmodified, if the
        document is malformed.
        """
        try:
            doc = parse_document(text)
        except MalformedDocumentError as exc:
            logger.error("Could not load %s: %s", self._pref_name, exc)
            return False

        migrated = doc.migrated
        rules: list[Rule] = []
        index: dict[_RuleKey, Rule] = {}
        app_uids: dict[str, int] = {}
        uids: Counter[int] = Counter()

        for rule_type, value in doc.entries:
            if rule_type is RuleType.APP:
                package_name = self._migrate_app_value(value)
                if package_name is None:
                    continue
                if package_name != value:
                    migrated = True
                value = package_name
            else:
                value = _normalize(rule_type, value)

            key = (rule_type, value)
            if key in index:
                continue

            if rule_type is RuleType.APP:
                uid = self._resolver.get_uid(value)
                if uid == UID_NO_FILTER:
                    logger.warning("Skipping app %s: no uid found", value)
                    continue
                app_uids[value] = uid
                uids[uid] += 1

            rule = self._make_rule(rule_type, value)
            rules.append(rule)
            index[key] = rule

        with self._lock:
            changed = [r.key for r in self._rules] != [r.key for r in rules]
            self._rules = rules
            self._index = index
            self._app_uids = app_uids
            self._uids = uids

        self._format_migration = migrated
        logger.debug("Loaded %d rule(s) into %s", len(rules), self._pref_name)
        if changed:
            self._notify()
        return True

    def _migrate_app_value(self, value: str) -> str | None:
        """Map a legacy uid-based APP value to a package name.

        Returns the value unchanged if it already is a package name, or None
        if the uid no longer resolves (e.g. the app was uninstalled).
        """
        if not _LEGACY_UID_RE.fullmatch(value):
            return value
        uid = int(value)

        app = self._resolver.get(uid, 0)
        if app is None:
            logger.warning("Ignoring unknown UID %d", uid)
            return None

        logger.info("UID %d resolved to package %s", uid, app.package_name)
        return app.package_name

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_rule(self, rule_type: RuleType, value: str) -> bool:
        """Add a rule. Returns True if it was not already in the list.

        HOST values are normalized; APP values must be package names. An APP
        rule whose package cannot be resolved to a uid is refused.
        """
        added = self._insert(self._make_rule(rule_type, _normalize(rule_type, value)))
        if added:
            self._notify()
        return added

    def add_ip(self, ip: str) -> bool:
        return self.add_rule(RuleType.IP, ip)

    def add_host(self, host: str) -> bool:
        return self.add_rule(RuleType.HOST, host)

    def add_proto(self, proto: str) -> bool:
        return self.add_rule(RuleType.PROTOCOL, proto)

    def add_country(self, country_code: str) -> bool:
        return self.add_rule(RuleType.COUNTRY, country_code)

    def add_app(self, package_name: str) -> bool:
        return self.add_rule(RuleType.APP, package_name)

    def add_app_uid(self, uid: int) -> bool:
        """Add an APP rule for the app currently owning *uid*.

        The rule is stored by package name so it works across installations.
        """
        app = self._resolver.get(uid, 0)
        if app is None:
            logger.warning("Could not resolve UID %d", uid)
            return False
        return self.add_app(app.package_name)

    def add_rules(self, other: MatchList) -> int:
        """Merge the rules of *other* into this list.

        Returns the number of rules actually added. Listeners are notified
        once for the whole batch.
        """
        num_added = 0
        for rule in other.iter_rules():
            if self._insert(self._make_rule(rule.type, rule.value)):
                num_added += 1

        if num_added > 0:
            self._notify()
        return num_added

    def remove_rule(self, rule: Rule) -> bool:
        """Remove the rule equal to *rule*. Returns True if it was present."""
        key = (rule.type, _normalize(rule.type, rule.value))

        with self._lock:
            existing = self._index.pop(key, None)
            if existing is None:
                return False
            self._rules.remove(existing)

            if existing.type is RuleType.APP:
                uid = self._app_uids.pop(existing.value, UID_NO_FILTER)
                if uid != UID_NO_FILTER:
                    self._uids[uid] -= 1
                    if self._uids[uid] <= 0:
                        del self._uids[uid]

        self._notify()
        return True

    def remove_ip(self, ip: str) -> bool:
        return self.remove_rule(Rule(RuleType.IP, ip))

    def remove_host(self, host: str) -> bool:
        return self.remove_rule(Rule(RuleType.HOST, host))

    def remove_proto(self, proto: str) -> bool:
        return self.remove_rule(Rule(RuleType.PROTOCOL, proto))

    def remove_country(self, country_code: str) -> bool:
        return self.remove_rule(Rule(RuleType.COUNTRY, country_code))

    def remove_app(self, package_name: str) -> bool:
        return self.remove_rule(Rule(RuleType.APP, package_name))

    def remove_app_uid(self, uid: int) -> bool:
        app = self._resolver.get(uid, 0)
        if app is None:
            logger.warning("Could not resolve UID %d", uid)
            return False
        return self.remove_app(app.package_name)

    def clear(self, notify: bool = True) -> None:
        with self._lock:
            had_rules = bool(self._rules)
            self._rules = []
            self._index = {}
            self._app_uids = {}
            self._uids = Counter()

        if notify and had_rules:
            self._notify()

    def _make_rule(self, rule_type: RuleType, value: str) -> Rule:
        return Rule(rule_type, value, rule_label(rule_type, value, self._resolver))

    def _insert(self, rule: Rule) -> bool:
        with self._lock:
            if rule.key in self._index:
                return False

        uid = UID_NO_FILTER
        if rule.type is RuleType.APP:
            # apps are matched by uid, so one must be known now
            uid = self._resolver.get_uid(rule.value)
            if uid == UID_NO_FILTER:
                logger.warning("No uid found for package %s, rule not added", rule.value)
                return False

        with self._lock:
            if rule.key in self._index:
                return False

            self._rules.append(rule)
            self._index[rule.key] = rule
            if rule.type is RuleType.APP:
                self._app_uids[rule.value] = uid
                self._uids[uid] += 1
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

    @property
    def size(self) -> int:
        return len(self)

    def is_empty(self) -> bool:
        return len(self) == 0

    def __contains__(self, rule: object) -> bool:
        if not isinstance(rule, Rule):
            return False
        with self._lock:
            return rule.key in self._index

    def iter_rules(self) -> Iterator[Rule]:
        """Iterate over a snapshot of the rules in insertion order."""
        with self._lock:
            rules = tuple(self._rules)
        return iter(rules)

    def __iter__(self) -> Iterator[Rule]:
        return self.iter_rules()

    def matches_app(self, uid: int) -> bool:
        # match apps by uid (faster) rather than by package name
        with self._lock:
            return uid in self._uids

    def matches_ip(self, ip: str) -> bool:
        with self._lock:
            return (RuleType.IP, ip) in self._index

    def matches_proto(self, l7proto: str) -> bool:
        with self._lock:
            return (RuleType.PROTOCOL, l7proto) in self._index

    def matches_country(self, country_code: str) -> bool:
        with self._lock:
            return (RuleType.COUNTRY, country_code) in self._index

    def matches_exact_host(self, host: str) -> bool:
        with self._lock:
            return (RuleType.HOST, clean_domain(host)) in self._index

    def matches_host(self, host: str) -> bool:
        """Match *host* exactly or by its second-level domain."""
        with self._lock:
            return self._matches_host_locked(host)

    def matches(self, conn: ConnectionDescriptor) -> bool:
        """Return True if any rule matches the connection."""
        with self._lock:
            if not self._index:
                return False

            return (
                conn.uid in self._uids
                or (RuleType.IP, conn.dst_ip) in self._index
                or (RuleType.PROTOCOL, conn.l7proto) in self._index
                or (RuleType.COUNTRY, conn.country) in self._index
                or (bool(conn.info) and self._matches_host_locked(conn.info))
            )

    def _matches_host_locked(self, host: str) -> bool:
        host = clean_domain(host)
        if (RuleType.HOST, host) in self._index:
            return True

        domain = second_level_domain(host)
        return domain != host and (RuleType.HOST, domain) in self._index

    def to_list_descriptor(self, exemptions: AppExemptions | None = None) -> ListDescriptor:
        """Project the list into hosts, ips and app uids.

        PROTOCOL and COUNTRY rules have no representation and are left out.
        Apps reported by *exemptions* are left out too.
        """
        with self._lock:
            rules = list(self._rules)
            uids = list(self._uids)

        descriptor = ListDescriptor()
        for rule in rules:
            if rule.type is RuleType.HOST:
                descriptor.hosts.append(rule.value)
            elif rule.type is RuleType.IP:
                descriptor.ips.append(rule.value)
            elif rule.type is not RuleType.APP:
                logger.warning("ListDescriptor does not support rule type %s", rule.type.name)

        for uid in uids:
            if exemptions is None or not exemptions.contains_app(uid):
                descriptor.apps.append(str(uid))
        return descriptor

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_list_change_listener(self, listener: ListChangeListener) -> None:
        self._listeners.append(listener)

    def remove_list_change_listener(self, listener: ListChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


def _normalize(rule_type: RuleType, value: str) -> str:
    if rule_type is RuleType.HOST:
        return clean_domain(value)
    return value
