"""JSON rule-file loader."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from rulewire_di.application import DIContainer
from rulewire_di.domain import IContainer, IRuleLoader, RuleFileError
from rulewire_di.infrastructure.loaders.markers import factory_for, translate

LOG = logging.getLogger(__name__)

DIR_TOKEN = "__DIR__"

_MARKER_FIELDS = ("constructParams", "construct_params", "substitutions", "call")
_INSTANCE_OF_FIELDS = ("instanceOf", "instance_of")


class JsonRuleLoader(IRuleLoader):
    """Loads rules from JSON documents.

    Two document shapes are accepted::

        {"rules": [{"name": "app.Database", "shared": true}]}
        {"app.Database": {"shared": true}}

    Inside ``constructParams``, ``substitutions`` and ``call``, objects of the
    form ``{"instance": "app.Mailer"}`` become Instance markers (a value
    containing ``::`` is a callback spec) and ``{"constant": "pkg.NAME"}``
    becomes a Constant marker. In files, ``__DIR__`` is replaced with the
    file's directory before decoding.

    Example:
        >>> container = JsonRuleLoader().load("config/rules.json")
        >>> JsonRuleLoader().load(["base.json", "local.json"], container)
    """

    def load(self, source: Any, container: Optional[IContainer] = None) -> IContainer:
        """Read rules from a JSON source and add them to a container.

        Args:
            source: JSON text, a file path, an already decoded mapping, or a
                list of those loaded in order.
            container: Container to add rules to. A new one is created if None.

        Returns:
            The container the rules were added to.

        Raises:
            RuleFileError: If a source cannot be read or decoded.
            MalformedRuleError: If a rule is invalid.
        """
        if container is None:
            container = DIContainer()

        if isinstance(source, (list, tuple)):
            for item in source:
                self.load(item, container)
            return container

        document = self._read(source)
        count = 0
        for name, fields in self._entries(source, document):
            container.add_rule(name, self._translate_rule(fields, container))
            count += 1

        LOG.debug("loaded %d rule(s) from json", count)
        return container

    def _read(self, source: Any) -> Dict[str, Any]:
        if isinstance(source, Mapping):
            return dict(source)

        if isinstance(source, str) and source.lstrip().startswith("{"):
            raw = source
        else:
            path = Path(os.fspath(source))
            try:
                raw = path.read_text(encoding="utf-8")
            except OSError as e:
                raise RuleFileError(source, str(e)) from e
            raw = raw.replace(DIR_TOKEN, str(path.resolve().parent))

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise RuleFileError(source, f"Could not decode json: {e}") from e

        if not isinstance(document, dict):
            raise RuleFileError(source, "top-level JSON value must be an object")
        return document

    def _entries(self, source: Any, document: Dict[str, Any]) -> Iterable[Tuple[str, Dict[str, Any]]]:
        if "rules" not in document:
            return [(name, fields) for name, fields in document.items()]

        entries = []
        for fields in document["rules"]:
            if not isinstance(fields, dict) or "name" not in fields:
                raise RuleFileError(source, "every entry in 'rules' needs a 'name'")
            fields = dict(fields)
            entries.append((fields.pop("name"), fields))
        return entries

    def _translate_rule(self, fields: Any, container: IContainer) -> Any:
        if not isinstance(fields, dict):
            return fields

        translated = dict(fields)
        for key in _MARKER_FIELDS:
            if key in translated:
                translated[key] = translate(translated[key], container)
        for key in _INSTANCE_OF_FIELDS:
            if key in translated:
                translated[key] = factory_for(translated[key], container)
        return translated
