"""JS scenarios: ordered browser actions executed server-side during a scrape.

A scenario is a list of single-key steps::

    [{"click": {"selector": "#load-more"}}, {"wait": 2000}]

``ScenarioBuilder`` produces such lists with the documented defaults filled
in; ``validate_scenario`` checks any list against ``JS_SCENARIO_SCHEMA``
with the jsonschema library.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator

from .errors import ScenarioError

ScenarioStep = Dict[str, Any]

_CONDITION_ACTION = {
    "type": "string",
    "enum": ["continue", "exit_success", "exit_failed"],
    "default": "continue",
}


def _step(name: str, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {name: body},
        "required": [name],
        "additionalProperties": False,
    }


def _object(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties, "additionalProperties": False}
    if required:
        schema["required"] = required
    return schema


_SELECTOR = {"type": "string", "minLength": 1}
_TIMEOUT_MS = {"type": "integer", "minimum": 0}

JS_SCENARIO_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$id": "https://scrapfly.io/schemas/js_scenario.json",
    "title": "Scrapfly JS Scenario",
    "type": "array",
    "items": {
        "oneOf": [
            _step(
                "click",
                _object(
                    {
                        "selector": _SELECTOR,
                        "ignore_if_not_visible": {"type": "boolean", "default": False},
                        "multiple": {"type": "boolean", "default": False},
                    },
                    ["selector"],
                ),
            ),
            _step(
                "fill",
                _object(
                    {
                        "selector": _SELECTOR,
                        "value": {"type": "string"},
                        "clear": {"type": "boolean", "default": False},
                    },
                    ["selector", "value"],
                ),
            ),
            _step(
                "condition",
                {
                    "oneOf": [
                        _object({"status_code": {"type": "integer"}, "action": _CONDITION_ACTION}, ["status_code"]),
                        _object(
                            {
                                "selector": _SELECTOR,
                                "selector_state": {
                                    "type": "string",
                                    "enum": ["existing", "not_existing"],
                                    "default": "existing",
                                },
                                "action": _CONDITION_ACTION,
                            },
                            ["selector"],
                        ),
                    ]
                },
            ),
            _step("wait", {"type": "integer", "minimum": 0}),
            _step(
                "scroll",
                _object(
                    {
                        "element": {"type": "string", "minLength": 1, "default": "body"},
                        "selector": {"type": "string", "minLength": 1, "default": "bottom"},
                        "infinite": {"type": "integer", "minimum": 0, "default": 0},
                        "click_selector": _SELECTOR,
                    }
                ),
            ),
            _step("execute", _object({"script": _SELECTOR, "timeout": dict(_TIMEOUT_MS, default=3000)}, ["script"])),
            _step("wait_for_navigation", _object({"timeout": dict(_TIMEOUT_MS, default=1000)})),
            _step(
                "wait_for_selector",
                _object(
                    {
                        "selector": _SELECTOR,
                        "state": {"type": "string", "enum": ["visible", "hidden"], "default": "visible"},
                        "timeout": dict(_TIMEOUT_MS, default=5000),
                    },
                    ["selector"],
                ),
            ),
        ]
    },
}

_VALIDATOR = Draft7Validator(JS_SCENARIO_SCHEMA)


def scenario_errors(steps: List[ScenarioStep]) -> List[str]:
    """Return a readable message for every schema violation in ``steps``."""
    messages = []
    for error in sorted(_VALIDATOR.iter_errors(steps), key=lambda e: [str(p) for p in e.path]):
        location = "/".join(str(p) for p in error.path) or "<root>"
        messages.append(f"js_scenario[{location}]: {error.message}")
    return messages


def validate_scenario(steps: List[ScenarioStep]) -> None:
    errors = scenario_errors(steps)
    if errors:
        raise ScenarioError(errors[0])


class ScenarioBuilder:
    """Fluent builder for JS scenarios.

    Example::

        steps = ScenarioBuilder().click("#load-more").wait(2000).build()
    """

    def __init__(self) -> None:
        self._steps: List[ScenarioStep] = []

    def click(self, selector: str, ignore_if_not_visible: bool = False, multiple: bool = False) -> "ScenarioBuilder":
        return self._add(
            "click", {"selector": selector, "ignore_if_not_visible": ignore_if_not_visible, "multiple": multiple}
        )

    def fill(self, selector: str, value: str, clear: bool = False) -> "ScenarioBuilder":
        return self._add("fill", {"selector": selector, "value": value, "clear": clear})

    def wait(self, milliseconds: int) -> "ScenarioBuilder":
        return self._add("wait", milliseconds)

    def scroll(
        self,
        element: str = "body",
        selector: str = "bottom",
        infinite: int = 0,
        click_selector: Optional[str] = None,
    ) -> "ScenarioBuilder":
        body: Dict[str, Any] = {"element": element, "selector": selector, "infinite": infinite}
        if click_selector:
            body["click_selector"] = click_selector
        return self._add("scroll", body)

    def execute(self, script: str, timeout: int = 3000) -> "ScenarioBuilder":
        return self._add("execute", {"script": script, "timeout": timeout})

    def wait_for_navigation(self, timeout: int = 1000) -> "ScenarioBuilder":
        return self._add("wait_for_navigation", {"timeout": timeout})

    def wait_for_selector(self, selector: str, state: str = "visible", timeout: int = 5000) -> "ScenarioBuilder":
        return self._add("wait_for_selector", {"selector": selector, "state": state, "timeout": timeout})

    def condition_status_code(self, status_code: int, action: str = "continue") -> "ScenarioBuilder":
        return self._add("condition", {"status_code": status_code, "action": action})

    def condition_selector(
        self, selector: str, selector_state: str = "existing", action: str = "continue"
    ) -> "ScenarioBuilder":
        return self._add("condition", {"selector": selector, "selector_state": selector_state, "action": action})

    def build(self) -> List[ScenarioStep]:
        """Return the validated step list; raise ``ScenarioError`` when a step is invalid."""
        steps = list(self._steps)
        validate_scenario(steps)
        return steps

    def _add(self, action: str, body: Any) -> "ScenarioBuilder":
        self._steps.append({action: body})
        return self
