"""Rule lists: models, matching, and the JSON document format."""

from matchlist.rules.match_list import MatchList
from matchlist.rules.models import ListDescriptor, Rule, RuleType

__all__ = ["ListDescriptor", "MatchList", "Rule", "RuleType"]
