"""XML rule-file loader."""

import logging
import os
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterator, Optional

from rulewire_di.application import DIContainer
from rulewire_di.domain import Constant, IContainer, IRuleLoader, MalformedRuleError, RuleFileError
from rulewire_di.infrastructure.loaders.markers import factory_for, instance_marker

LOG = logging.getLogger(__name__)

NAMESPACE_V2 = "urn:rulewire-di:rules:2.0"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _namespace(tag: str) -> str:
    return tag[1:].split("}", 1)[0] if tag.startswith("{") else ""


def _children(element: ET.Element, name: Optional[str] = None) -> Iterator[ET.Element]:
    for child in element:
        if isinstance(child.tag, str) and (name is None or _local(child.tag) == name):
            yield child


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    return next(_children(element, name), None)


def _text(element: Optional[ET.Element]) -> str:
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def _flag(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _required_name(name: str) -> str:
    if not name:
        raise MalformedRuleError("Every rule element needs a name")
    return name


class XmlRuleLoader(IRuleLoader):
    """Loads rules from XML documents.

    Version 1 documents describe each rule with child elements::

        <rules>
          <rule>
            <name>app.Database</name>
            <shared>true</shared>
            <constructParams><param>sqlite:///app.db</param></constructParams>
            <substitutions><as>app.ICache</as><use>app.RedisCache</use></substitutions>
            <call><method>connect</method><params><param>5</param></params></call>
          </rule>
        </rules>

    Version 2 documents declare the ``urn:rulewire-di:rules:2.0`` namespace and
    move scalar settings to attributes::

        <rules xmlns="urn:rulewire-di:rules:2.0">
          <rule name="app.Database" shared="true">
            <substitute as="app.ICache" use="app.RedisCache"/>
            <call method="connect"><param>5</param></call>
          </rule>
        </rules>

    A parameter holding an ``<instance>`` element becomes an Instance marker
    and one holding a ``<constant>`` element becomes a Constant marker. List
    settings are appended to whatever rule the container already has.
    """

    def load(self, source: Any, container: Optional[IContainer] = None) -> IContainer:
        """Read rules from an XML source and add them to a container.

        Args:
            source: A file path, XML text, or a parsed Element/ElementTree.
            container: Container to add rules to. A new one is created if None.

        Returns:
            The container the rules were added to.

        Raises:
            RuleFileError: If the source cannot be read or parsed.
            MalformedRuleError: If a rule is invalid.
        """
        if container is None:
            container = DIContainer()

        root = self._parse(source)
        if _namespace(root.tag) == NAMESPACE_V2:
            count = self._load_v2(root, container)
        else:
            count = self._load_v1(root, container)

        LOG.debug("loaded %d rule(s) from xml", count)
        return container

    def _parse(self, source: Any) -> ET.Element:
        if isinstance(source, ET.ElementTree):
            return source.getroot()
        if isinstance(source, ET.Element):
            return source

        try:
            if isinstance(source, str) and source.lstrip().startswith("<"):
                return ET.fromstring(source)
            return ET.parse(os.fspath(source)).getroot()
        except ET.ParseError as e:
            raise RuleFileError(source, f"Could not parse xml: {e}") from e
        except OSError as e:
            raise RuleFileError(source, str(e)) from e

    def _base_fields(self, container: IContainer, name: str) -> Dict[str, Any]:
        fields = container.get_rule(name).explicit_fields()
        for key, value in fields.items():
            if isinstance(value, list):
                fields[key] = list(value)
            elif isinstance(value, dict):
                fields[key] = dict(value)
        return fields

    def _component(self, element: ET.Element, container: IContainer) -> Any:
        instance = _child(element, "instance")
        if instance is not None:
            return instance_marker(_text(instance), container)
        constant = _child(element, "constant")
        if constant is not None:
            return Constant(_text(constant))
        return _text(element)

    def _append_construct_params(self, rule_element: ET.Element, fields: Dict[str, Any], container: IContainer) -> None:
        params = _child(rule_element, "constructParams")
        if params is None:
            return
        target = fields.setdefault("construct_params", [])
        for param in _children(params):
            target.append(self._component(param, container))

    def _append_share_instances(self, rule_element: ET.Element, fields: Dict[str, Any]) -> None:
        shares = _child(rule_element, "shareInstances")
        if shares is None:
            return
        target = fields.setdefault("share_instances", [])
        for share in _children(shares):
            target.append(_text(share))

    def _set_instance_of(self, value: str, fields: Dict[str, Any], container: IContainer) -> None:
        if value:
            fields["instance_of"] = factory_for(value, container)

    def _load_v1(self, root: ET.Element, container: IContainer) -> int:
        count = 0
        for element in _children(root):
            name = _required_name(_text(_child(element, "name")))
            fields = self._base_fields(container, name)

            shared = _child(element, "shared")
            if shared is not None:
                fields["shared"] = _flag(_text(shared))

            inherit = _child(element, "inherit")
            if inherit is not None:
                fields["inherit"] = _flag(_text(inherit))

            for call in _children(element, "call"):
                params = _child(call, "params")
                args = [self._component(p, container) for p in _children(params)] if params is not None else []
                fields.setdefault("call", []).append((_text(_child(call, "method")), args))

            self._set_instance_of(_text(_child(element, "instanceOf")), fields, container)

            for new_instance in _children(element, "newInstances"):
                fields.setdefault("new_instances", []).append(_text(new_instance))

            for substitution in _children(element, "substitutions"):
                use = _text(_child(substitution, "use"))
                fields.setdefault("substitutions", {})[_text(_child(substitution, "as"))] = instance_marker(
                    use, container
                )

            self._append_construct_params(element, fields, container)
            self._append_share_instances(element, fields)

            container.add_rule(name, fields)
            count += 1
        return count

    def _load_v2(self, root: ET.Element, container: IContainer) -> int:
        count = 0
        for element in _children(root):
            name = _required_name(element.get("name", ""))
            fields = self._base_fields(container, name)

            for call in _children(element, "call"):
                args = [self._component(p, container) for p in _children(call)]
                fields.setdefault("call", []).append((call.get("method", ""), args))

            if "inherit" in element.attrib:
                fields["inherit"] = _flag(element.attrib["inherit"])

            self._set_instance_of(element.get("instanceOf", ""), fields, container)

            if "shared" in element.attrib:
                fields["shared"] = _flag(element.attrib["shared"])

            self._append_construct_params(element, fields, container)

            for substitution in _children(element, "substitute"):
                fields.setdefault("substitutions", {})[substitution.get("as", "")] = instance_marker(
                    substitution.get("use", ""), container
                )

            self._append_share_instances(element, fields)

            container.add_rule(name, fields)
            count += 1
        return count
