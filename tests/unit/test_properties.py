"""Tests for property layer merging and template substitution."""

from __future__ import annotations

from stackpush.engine.properties import resolve, resolve_sources, substitute, template_parameters


class _StaticSource:
    def __init__(self, name: str, layer: dict[str, str]) -> None:
        self.name = name
        self.layer = layer
        self.loads = 0

    def load(self) -> dict[str, str]:
        self.loads += 1
        return dict(self.layer)


class TestResolve:
    def test_later_layer_wins(self) -> None:
        merged = resolve([{"A": "1", "B": "x"}, {"A": "2"}, {"C": "3"}])
        assert merged == {"A": "2", "B": "x", "C": "3"}

    def test_no_layers(self) -> None:
        assert resolve([]) == {}

    def test_layers_are_not_mutated(self) -> None:
        first = {"A": "1"}
        resolve([first, {"A": "2"}])
        assert first == {"A": "1"}

    def test_highest_layer_overrides_environment_file(self) -> None:
        previous = {"aws.stack.Queue": "old-queue", "Size": "small"}
        environment = {"Size": "large"}
        broker = {"Size": "xlarge"}
        merged = resolve([previous, environment, {}, broker])
        assert merged["Size"] == "xlarge"
        assert merged["aws.stack.Queue"] == "old-queue"


class TestResolveSources:
    def test_each_source_loaded_once_in_order(self) -> None:
        low = _StaticSource("low", {"K": "low", "L": "1"})
        high = _StaticSource("high", {"K": "high"})

        merged = resolve_sources([low, high])

        assert merged == {"K": "high", "L": "1"}
        assert low.loads == 1
        assert high.loads == 1


class TestSubstitute:
    def test_replaces_tokens(self) -> None:
        template = '{"Image": "repo:${Version}", "Env": "${DeployEnvironment}"}'
        result = substitute(template, {"Version": "1.2.3", "DeployEnvironment": "dev"})
        assert result == '{"Image": "repo:1.2.3", "Env": "dev"}'

    def test_replaces_every_occurrence(self) -> None:
        assert substitute("${A}-${A}", {"A": "x"}) == "x-x"

    def test_unknown_tokens_survive(self) -> None:
        template = '{"Fn::Sub": "arn:aws:s3:::${AWS::Region}-${Bucket}"}'
        result = substitute(template, {"Bucket": "data"})
        assert result == '{"Fn::Sub": "arn:aws:s3:::${AWS::Region}-data"}'

    def test_bare_key_is_not_replaced(self) -> None:
        assert substitute("Version ${Version}", {"Version": "7"}) == "Version 7"

    def test_keys_with_dots(self) -> None:
        result = substitute("${aws.stack.Queue}", {"aws.stack.Queue": "https://sqs/q"})
        assert result == "https://sqs/q"

    def test_substituted_values_are_not_expanded_again(self) -> None:
        properties = {"a": "${b}", "b": "x"}
        assert substitute("${a}|${b}", properties) == "${b}|x"
        assert substitute("${a}|${b}", dict(reversed(properties.items()))) == "${b}|x"


class TestTemplateParameters:
    def test_selects_keys_present_in_template(self) -> None:
        template = '{"Parameters": {"DatabasePassword": {"Type": "String"}}}'
        properties = {"DatabasePassword": "s3cret", "UnrelatedKey": "x"}
        assert template_parameters(template, properties) == {"DatabasePassword": "s3cret"}

    def test_literal_substring_match(self) -> None:
        # "Port" occurs inside "DatabasePort", so it is selected too.
        template = '{"Parameters": {"DatabasePort": {}}}'
        params = template_parameters(template, {"Port": "1", "DatabasePort": "5432"})
        assert params == {"Port": "1", "DatabasePort": "5432"}

    def test_empty_template(self) -> None:
        assert template_parameters("", {"A": "1"}) == {}
