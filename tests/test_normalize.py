import pytest
import yaml

from appexport.core.normalize import normalize_manifest, normalize_resource, parse_resource
from appexport.pacts.errors import NormalizationError
from appexport.pacts.types import K8sResource

from conftest import DEPLOYMENT


def test_strips_cluster_identity():
    kind, text = normalize_resource(K8sResource(content=DEPLOYMENT.format(name="api")))
    doc = yaml.safe_load(text)
    assert kind == "Deployment"
    assert doc["metadata"] == {"name": "api", "labels": {"app": "api"}}
    assert doc["spec"] == {"replicas": 2}
    for field in ("namespace", "resourceVersion", "uid", "creationTimestamp"):
        assert field not in text


def test_unknown_kind_and_nested_fields_untouched():
    doc = {
        "apiVersion": "example.com/v1alpha1",
        "kind": "Widget",
        "metadata": {"name": "w", "uid": "x"},
        "spec": {"namespace": "keep-me", "items": [{"uid": "keep"}]},
    }
    result = normalize_manifest(doc)
    assert result["metadata"] == {"name": "w"}
    assert result["spec"] == doc["spec"]
    # input untouched
    assert doc["metadata"]["uid"] == "x"


def test_missing_metadata_is_fine():
    assert normalize_manifest({"kind": "Thing"}) == {"kind": "Thing"}


def test_kind_falls_back_to_declared_kind():
    doc = parse_resource(K8sResource(content="metadata:\n  name: x\n", kind="ConfigMap"))
    assert doc["kind"] == "ConfigMap"


@pytest.mark.parametrize("content", [
    "kind: [unclosed",
    "- just\n- a list\n",
    "metadata:\n  name: nokind\n",
    "kind: ../etc\n",
])
def test_malformed_manifest_raises(content):
    with pytest.raises(NormalizationError) as exc_info:
        normalize_resource(K8sResource(content=content, name="bad"))
    assert exc_info.value.operation == "normalize"
    assert "bad" in str(exc_info.value)
