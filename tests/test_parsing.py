import pytest

from appexport.io.config import load_config
from appexport.io.parsing import load_descriptor, load_resource_dir
from appexport.pacts.errors import ConfigError

from conftest import DEPLOYMENT, SERVICE

DESCRIPTOR = """\
name: shop
version: "1.10"
mode: offline
annotations:
  version_info: spring release
components:
  - name: web
    display_name: Web
    image: example.com/web:1.0
    credentials:
      hub_user: bot
      hub_password: pw
    cpu: 250
    memory: 128
    ports:
      - container_port: 80
    scaling:
      step_node: 2
plugins:
  - name: mesh
    image: example.com/mesh:2
"""


def test_load_descriptor(tmp_path):
    path = tmp_path / "app.yaml"
    path.write_text(DESCRIPTOR)
    desc = load_descriptor(str(path))
    assert desc.version == "1.10"
    assert desc.offline
    web = desc.components[0]
    assert web.credentials.hub_user == "bot"
    assert web.ports[0].container_port == 80
    assert web.scaling.step_node == 2
    assert desc.plugins[0].image == "example.com/mesh:2"


def test_load_descriptor_json(tmp_path):
    path = tmp_path / "app.json"
    path.write_text('{"name": "shop", "version": "2.0", "components": [{"name": "db"}]}')
    desc = load_descriptor(str(path))
    assert desc.components[0].arch == "amd64"
    assert desc.mode == "online"


def test_resources_dir(tmp_path):
    manifests = tmp_path / "manifests"
    manifests.mkdir()
    (manifests / "b.yaml").write_text(SERVICE)
    (manifests / "a.yaml").write_text(
        DEPLOYMENT.format(name="api") + "---\n" + DEPLOYMENT.format(name="worker") + "---\n")
    path = tmp_path / "app.yaml"
    path.write_text("name: shop\nversion: '1'\nresources_dir: manifests\n")
    desc = load_descriptor(str(path))
    assert [(r.kind, r.name) for r in desc.resources] == [
        ("Deployment", "api"), ("Deployment", "worker"), ("Service", "web")]


def test_load_resource_dir_rejects_bad_yaml(tmp_path):
    (tmp_path / "x.yaml").write_text("kind: [oops")
    with pytest.raises(ConfigError):
        load_resource_dir(str(tmp_path))


@pytest.mark.parametrize("content", [
    "version: '1'\n",
    "name: shop\nversion: '1'\nmode: sideways\n",
    "name: shop\nversion: '1'\ncomponents:\n  - name: web\n    colour: blue\n",
    "- not a mapping\n",
])
def test_invalid_descriptor(tmp_path, content):
    path = tmp_path / "app.yaml"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_descriptor(str(path))


def test_missing_descriptor(tmp_path):
    with pytest.raises(ConfigError):
        load_descriptor(str(tmp_path / "nope.yaml"))


@pytest.mark.parametrize("content", [
    "name: shop\nversion: 1.10\n",
    "name: 42\nversion: '1'\n",
])
def test_unquoted_numbers_are_rejected(tmp_path, content):
    path = tmp_path / "app.yaml"
    path.write_text(content)
    with pytest.raises(ConfigError) as exc_info:
        load_descriptor(str(path))
    assert "quote it" in str(exc_info.value)


def test_load_config_defaults(tmp_path):
    cfg = load_config(str(tmp_path / "appexport.yaml"))
    assert cfg == {
        "scratch_dir": "./.appexport-work",
        "output_dir": ".",
        "format": "cpk",
        "pull_workers": 1,
        "formats": {},
        "extensions_dir": None,
    }


def test_load_config_keeps_values(tmp_path):
    path = tmp_path / "appexport.yaml"
    path.write_text("format: helm\nformats:\n  helm:\n    image_handle: image_save\n")
    cfg = load_config(str(path))
    assert cfg["format"] == "helm"
    assert cfg["formats"]["helm"] == {"image_handle": "image_save"}
    assert cfg["output_dir"] == "."


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "appexport.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ConfigError):
        load_config(str(path))
