"""
Reshape raw relation tags into normalized country metadata
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from core.exceptions import TagClassificationError
from schemas.country import CountryMetadata

logger = logging.getLogger(__name__)

# 'int_name', 'loc_name', 'long_name', 'official_language', 'coat_of_arms' are left in tags
ROOT_FIELDS = (
    "name", "official_name", "default_language", "flag", "ISO3166-2",
    "timezone", "currency", "wikidata", "wikipedia",
)

TRANSLATION_FIELDS = (
    "alt_name", "alt_official_name", "alt_short_name", "long_name", "name", "official_name",
    "old_name", "old_official_name", "old_short_name", "short_name", "wikipedia",
)

UNSET_FIELDS = (
    "ISO3166-1", "boundary", "capital", "capital_city", "type", "url", "website",
)

# derived root field -> tags tried in order
RESOLVED_FIELDS = {
    "capital": ("capital", "capital_city"),
    "website": ("website", "url"),
}

ISO3166_1_PREFIX = "iso3166-1:"
NAME_UN_PREFIX = "name:un:"
NAME_UN_GROUP = "name:UN"


class TagClassifier:
    """
    Split a relation's tag set into root fields, subdivision codes,
    translation groups and a leftover bag.

    Handles:
    - Root field extraction (missing fields become None)
    - capital/website fallbacks
    - ``ISO3166-1:*`` codes, upper-cased
    - ``name:UN:*`` and ``<translation field>:*`` language groups
    """

    def __init__(
        self,
        root_fields: Iterable[str] = ROOT_FIELDS,
        translation_fields: Iterable[str] = TRANSLATION_FIELDS,
        unset_fields: Iterable[str] = UNSET_FIELDS,
    ):
        self.root_fields: Tuple[str, ...] = tuple(root_fields)
        self.translation_fields: Tuple[str, ...] = tuple(translation_fields)
        self.unset_fields: Tuple[str, ...] = tuple(unset_fields)

    def classify(
        self,
        code: str,
        document: Dict[str, Any],
        relation_id: Optional[int] = None
    ) -> CountryMetadata:
        """
        Reshape one relation document.

        Args:
            code: ISO3166-1 alpha-3 code the relation is indexed under
            document: Raw relation API response
            relation_id: Indexed relation id (default: the element's id)

        Returns:
            Validated CountryMetadata
        """
        element = self._element(code, document)
        relation_id = relation_id if relation_id is not None else element.get("id")

        # work on a sorted copy, the document stays untouched
        tags: Dict[str, str] = dict(sorted((element.get("tags") or {}).items()))

        data: Dict[str, Any] = {"relation_id": relation_id}

        for field in self.root_fields:
            data[field] = tags.pop(field, None)

        for field, sources in RESOLVED_FIELDS.items():
            data[field] = self._first_present(tags, sources)

        for field in self.unset_fields:
            tags.pop(field, None)

        iso3166_1, lang, consumed = self._classify_prefixed(tags)

        data["ISO3166-1"] = iso3166_1
        data["lang"] = lang
        data["tags"] = {k: v for k, v in tags.items() if k not in consumed}

        try:
            metadata = CountryMetadata.model_validate(data)
        except ValueError as e:
            raise TagClassificationError(
                "Relation document failed validation",
                context={"code": code, "relation_id": relation_id},
                original_exception=e
            )

        logger.info(f"processed: [{code}] {metadata.name}")
        return metadata

    def _classify_prefixed(self, tags: Dict[str, str]):
        iso3166_1: Dict[str, str] = {}
        lang: Dict[str, Dict[str, str]] = {}
        consumed: List[str] = []

        for key, value in tags.items():
            lowered = key.lower()

            if lowered.startswith(ISO3166_1_PREFIX):
                iso3166_1[key[len(ISO3166_1_PREFIX):]] = value.upper()
                consumed.append(key)
                continue

            if lowered.startswith(NAME_UN_PREFIX):
                lang.setdefault(NAME_UN_GROUP, {})[key[len(NAME_UN_PREFIX):]] = value
                consumed.append(key)
                continue

            # no first-match-wins: every matching field gets a copy
            for field in self.translation_fields:
                prefix = f"{field}:"

                if lowered.startswith(prefix.lower()):
                    lang.setdefault(field, {})[key[len(prefix):]] = value
                    consumed.append(key)

        return iso3166_1, lang, set(consumed)

    @staticmethod
    def _first_present(tags: Dict[str, str], sources: Tuple[str, ...]) -> Optional[str]:
        for source in sources:
            if source in tags:
                return tags[source]
        return None

    @staticmethod
    def _element(code: str, document: Dict[str, Any]) -> Dict[str, Any]:
        elements = document.get("elements") if isinstance(document, dict) else None

        if not elements or not isinstance(elements[0], dict):
            raise TagClassificationError(
                "Relation document has no elements",
                context={"code": code}
            )

        return elements[0]
