from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone

import pytest

from habitat_client.application.typed import ENVIRONMENT_COMPONENT_NAME, ApplicationConfigProvider, ConfigSchema, strip_component_prefix
from habitat_client.domain.config import ConfigNode, ConfigRoot
from habitat_client.domain.errors import ConfigValidationError, UnableToAccessConfiguration
from habitat_client.validators import exists, is_valid_integer, is_valid_url
from tests.support import FakeConfigService, FakeProviderFactory

APPLICATION = "ProTeck.Config.Client.Test"
TEST_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class CompositeConfigObject:
    name: str
    number: int


@dataclass(frozen=True)
class SampleApplicationConfig:
    connection_string: str
    rest_url: str
    timeout: int
    config_object: CompositeConfigObject


def is_a_delicious_taco(value: str | None) -> bool:
    return value is not None and value.upper() == "TACO"


def create_sample_config(application: dict[str, str | None], environment: dict[str, str | None]) -> SampleApplicationConfig:
    return SampleApplicationConfig(
        connection_string=environment["ConnectionString"] or "",
        rest_url=environment["RestUrl"] or "",
        timeout=int(application["TimeOut"] or 0),
        config_object=CompositeConfigObject(
            name=application["ConfigObject.Name"] or "",
            number=int(application["ConfigObject.Number"] or 0),
        ),
    )


SAMPLE_SCHEMA = (
    ConfigSchema(APPLICATION, create=create_sample_config)
    .with_environment_mapping("RestUrl", is_valid_url)
    .with_environment_mapping("ConnectionString", exists)
    .with_application_mapping("TimeOut", is_valid_integer)
    .with_application_mapping("ConfigObject.Name", is_a_delicious_taco)
    .with_application_mapping("ConfigObject.Number", is_valid_integer)
)

EXPECTED = SampleApplicationConfig(
    connection_string="This is a connection string.",
    rest_url="http://fake",
    timeout=500,
    config_object=CompositeConfigObject(name="Taco", number=6),
)


def canned_application_config() -> ConfigRoot:
    data = ConfigNode(
        APPLICATION,
        children=(
            ConfigNode("TimeOut", "500"),
            ConfigNode("ConfigObject", children=(ConfigNode("Name", "Taco"), ConfigNode("Number", "6"))),
        ),
    )
    return ConfigRoot(APPLICATION, TEST_DATE, data)


def canned_environment_config() -> ConfigRoot:
    data = ConfigNode(
        ENVIRONMENT_COMPONENT_NAME,
        children=(ConfigNode("RestUrl", "http://fake"), ConfigNode("ConnectionString", "This is a connection string.")),
    )
    return ConfigRoot(ENVIRONMENT_COMPONENT_NAME, TEST_DATE, data)


def without_child(root: ConfigRoot, index: int) -> ConfigRoot:
    assert root.data is not None
    children = root.data.children[:index] + root.data.children[index + 1 :]
    return replace(root, data=replace(root.data, children=children))


def make_factory(application: ConfigRoot, environment: ConfigRoot) -> FakeProviderFactory:
    return FakeProviderFactory(
        {
            APPLICATION: FakeConfigService.serving(application),
            ENVIRONMENT_COMPONENT_NAME: FakeConfigService.serving(environment),
        }
    )


def test_successful_conversion_to_typed_object_graph() -> None:
    factory = make_factory(canned_application_config(), canned_environment_config())
    provider = ApplicationConfigProvider(SAMPLE_SCHEMA, factory)

    assert provider.get_configuration() == EXPECTED
    assert factory.created == [APPLICATION, ENVIRONMENT_COMPONENT_NAME]


def test_missing_application_configuration_raises_typed_error() -> None:
    factory = make_factory(without_child(canned_application_config(), 0), canned_environment_config())

    with pytest.raises(UnableToAccessConfiguration) as info:
        ApplicationConfigProvider(SAMPLE_SCHEMA, factory).get_configuration()

    cause = info.value.__cause__
    assert isinstance(cause, ConfigValidationError)
    assert cause.validation_errors == [f"{APPLICATION}.TimeOut"]
    assert f"{APPLICATION}.TimeOut" in info.value.render()


def test_missing_environment_configuration_raises_typed_error() -> None:
    factory = make_factory(canned_application_config(), without_child(canned_environment_config(), 1))

    with pytest.raises(UnableToAccessConfiguration) as info:
        ApplicationConfigProvider(SAMPLE_SCHEMA, factory).get_configuration()

    assert info.value.component_name == ENVIRONMENT_COMPONENT_NAME
    cause = info.value.__cause__
    assert isinstance(cause, ConfigValidationError)
    assert cause.validation_errors == ["Environment.ConnectionString"]
    assert "Environment.ConnectionString" in info.value.render()


def test_every_call_reruns_the_pipeline() -> None:
    factory = make_factory(canned_application_config(), canned_environment_config())
    provider = ApplicationConfigProvider(SAMPLE_SCHEMA, factory)

    provider.get_configuration()
    provider.get_configuration()

    assert factory.services[APPLICATION].requests == [APPLICATION, APPLICATION]
    assert factory.services[ENVIRONMENT_COMPONENT_NAME].requests == [ENVIRONMENT_COMPONENT_NAME] * 2


def test_schema_qualifies_keys_with_component_names() -> None:
    assert list(SAMPLE_SCHEMA.application_validators) == [
        f"{APPLICATION}.TimeOut",
        f"{APPLICATION}.ConfigObject.Name",
        f"{APPLICATION}.ConfigObject.Number",
    ]
    assert list(SAMPLE_SCHEMA.environment_validators) == ["Environment.RestUrl", "Environment.ConnectionString"]


def test_first_registration_of_a_key_wins() -> None:
    schema = ConfigSchema("app", create=lambda app, env: app).with_application_mapping("Key", exists)
    updated = schema.with_application_mapping("Key", is_valid_integer)

    assert updated.application["Key"] is exists
    assert schema is not updated


def test_schema_mappings_are_read_only() -> None:
    source = {"Key": exists}
    schema = ConfigSchema("app", create=lambda app, env: app, application=source)
    source["Other"] = exists

    assert list(schema.application) == ["Key"]
    with pytest.raises(TypeError):
        schema.application["Other"] = exists  # type: ignore[index]


@pytest.mark.parametrize(
    ("key", "component", "expected"),
    [
        ("ProTeck.Config.Client.Test.ConfigObject.Name", APPLICATION, "ConfigObject.Name"),
        ("Environment.RestUrl", "Environment", "RestUrl"),
        ("Unrelated.Key", "Environment", "Unrelated.Key"),
        ("app.inner.app.Key", "app", "inner.app.Key"),
    ],
)
def test_strip_component_prefix(key: str, component: str, expected: str) -> None:
    assert strip_component_prefix(key, component) == expected


def test_both_component_reads_share_one_trace_id(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="habitat_client")
    factory = make_factory(canned_application_config(), canned_environment_config())

    ApplicationConfigProvider(SAMPLE_SCHEMA, factory).get_configuration()

    selected = [record for record in caplog.records if record.getMessage() == "config_selected"]
    trace_ids = {getattr(record, "context")["trace_id"] for record in selected}
    assert [getattr(record, "context")["component"] for record in selected] == [APPLICATION, ENVIRONMENT_COMPONENT_NAME]
    assert len(trace_ids) == 1 and None not in trace_ids
