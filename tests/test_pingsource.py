import pytest

from knoperator.pingsource import NotFoundError, replicas_env_vars_transform

IMAGE = "example.com/eventing/mtping:placeholder"


class MockGetter:
    def __init__(self, existing):
        self.existing = existing

    def get(self, resource):
        if self.existing is None:
            raise NotFoundError("not found")
        return self.existing


class FailingGetter:
    def get(self, resource):
        raise RuntimeError("boom")


def ns_var(api_version="v1"):
    return {
        "name": "SYSTEM_NAMESPACE",
        "valueFrom": {"fieldRef": {"apiVersion": api_version, "fieldPath": "metadata.namespace"}},
    }


def var(name, value):
    return {"name": name, "value": value}


def container(name, env):
    return {"name": name, "image": IMAGE, "env": env}


def deployment(replicas, containers, name="pingsource-mt-adapter"):
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": "knative-eventing"},
        "spec": {"replicas": replicas, "template": {"spec": {"containers": containers}}},
    }


CASES = [
    (
        "same containers, different env vars and replicas",
        deployment(0, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", ""), var("K_LOGGING_CONFIG", ""),
            var("K_LOGGING_CONFIG_1", "overwrite"), var("K_TRACING_CONFIG", "to be overwritten"),
            var("NAMESPACE", "to be overwritten"),
        ])]),
        deployment(1, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", "old"), var("K_LOGGING_CONFIG", "old"),
            var("K_LOGGING_CONFIG_1", "old"), var("K_TRACING_CONFIG", "old"), var("NAMESPACE", "old"),
        ])]),
        deployment(1, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", "old"), var("K_LOGGING_CONFIG", "old"),
            var("K_TRACING_CONFIG", "old"), var("NAMESPACE", "old"),
            var("K_LOGGING_CONFIG_1", "overwrite"),
        ])]),
    ),
    (
        "existing has less containers",
        deployment(0, [
            container("dispatcher", [ns_var(), var("K_METRICS_CONFIG", ""), var("K_LOGGING_CONFIG", "")]),
            container("dispatcher1", [ns_var(), var("K_METRICS_CONFIG", ""), var("K_LOGGING_CONFIG", "")]),
        ]),
        deployment(1, [
            container("dispatcher", [ns_var("v2"), var("K_METRICS_CONFIG", "test1"), var("K_LOGGING_CONFIG", "test2")]),
        ]),
        deployment(1, [
            container("dispatcher", [ns_var("v2"), var("K_METRICS_CONFIG", "test1"), var("K_LOGGING_CONFIG", "test2")]),
            container("dispatcher1", [ns_var(), var("K_METRICS_CONFIG", ""), var("K_LOGGING_CONFIG", "")]),
        ]),
    ),
    (
        "existing has more containers",
        deployment(0, [
            container("dispatcher", [ns_var(), var("K_METRICS_CONFIG", ""), var("K_LOGGING_CONFIG", "")]),
        ]),
        deployment(1, [
            container("dispatcher1", [ns_var("v2"), var("K_METRICS_CONFIG", "test1"), var("K_LOGGING_CONFIG", "test2")]),
            container("dispatcher", [ns_var("v2"), var("K_METRICS_CONFIG", "test1"), var("K_LOGGING_CONFIG", "test2")]),
        ]),
        deployment(1, [
            container("dispatcher", [ns_var("v2"), var("K_METRICS_CONFIG", "test1"), var("K_LOGGING_CONFIG", "test2")]),
        ]),
    ),
    (
        "same containers, less env vars",
        deployment(0, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", ""), var("K_LOGGING_CONFIG", "new-env-var"),
        ])]),
        deployment(1, [container("dispatcher", [ns_var(), var("K_METRICS_CONFIG", "test1")])]),
        deployment(1, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", "test1"), var("K_LOGGING_CONFIG", "new-env-var"),
        ])]),
    ),
    (
        "same containers, more env vars",
        deployment(0, [container("dispatcher", [ns_var(), var("K_METRICS_CONFIG", "")])]),
        deployment(1, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", "test1"), var("K_LOGGING_CONFIG", "existing-env-var"),
        ])]),
        deployment(1, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", "test1"), var("K_LOGGING_CONFIG", "existing-env-var"),
        ])]),
    ),
    (
        "needs to delete env var",
        deployment(0, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", ""), var("K_LOGGING_CONFIG", ""),
        ])]),
        deployment(1, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", "old"), var("K_LOGGING_CONFIG", "old"),
            var("K_LOGGING_CONFIG_1", "old"),
        ])]),
        deployment(1, [container("dispatcher", [
            ns_var(), var("K_METRICS_CONFIG", "old"), var("K_LOGGING_CONFIG", "old"),
        ])]),
    ),
]


@pytest.mark.parametrize("name,given,existing,expected", CASES, ids=[c[0] for c in CASES])
def test_pingsource_adapter_transform(name, given, existing, expected):
    replicas_env_vars_transform(MockGetter(existing))(given)
    assert given == expected


def test_missing_in_cluster_leaves_resource_alone():
    given = deployment(0, [container("dispatcher", [var("K_METRICS_CONFIG", "")])])
    before = deployment(0, [container("dispatcher", [var("K_METRICS_CONFIG", "")])])
    replicas_env_vars_transform(MockGetter(None))(given)
    assert given == before


def test_other_deployments_untouched():
    given = deployment(0, [container("dispatcher", [])], name="other")
    existing = deployment(5, [container("dispatcher", [var("NAMESPACE", "old")])], name="other")
    replicas_env_vars_transform(MockGetter(existing))(given)
    assert given["spec"]["replicas"] == 0
    assert given["spec"]["template"]["spec"]["containers"][0]["env"] == []


def test_other_errors_propagate():
    given = deployment(0, [container("dispatcher", [])])
    with pytest.raises(RuntimeError, match="boom"):
        replicas_env_vars_transform(FailingGetter())(given)


def test_missing_live_replicas_clears_replicas():
    given = deployment(3, [container("dispatcher", [var("A", "1")])])
    existing = deployment(0, [container("dispatcher", [])])
    del existing["spec"]["replicas"]
    replicas_env_vars_transform(MockGetter(existing))(given)
    assert "replicas" not in given["spec"]
    assert given["spec"]["template"]["spec"]["containers"][0]["env"] == [var("A", "1")]