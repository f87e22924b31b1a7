# knoperator

Transforms applied to Kubernetes manifests when installing Knative Eventing.
Each transform takes a resource as a plain dictionary (the shape you get from
loading YAML) and changes it in place when it applies to that resource;
resources it does not apply to are left untouched.

## Install

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## What is here

- `knoperator.spec` — the custom resource model: `KnativeEventing`,
  `KnativeEventingSpec`, `KnativeEventingStatus`, `WorkloadOverride`,
  `EnvRequirementsOverride`, `ProbesRequirementsOverride`,
  `ResourceRequirementsOverride`, `SourceConfigs` and `ManifestRef`.
  `KnativeEventing.workload_overrides()` returns the workload overrides
  followed by the deprecated deployment overrides.
  `KnativeEventing.target_version()` returns `spec.version`, or, when it is
  empty or `latest`, the highest version directory bundled under
  `$KO_DATA_PATH/knative-eventing` (or `latest` if there is a `latest`
  directory or none can be found).
- `knoperator.broker.default_broker_configmap_transform(instance)` — sets
  `clusterDefault.brokerClass` in the `default-br-config` entry of the
  `config-br-defaults` ConfigMap to `spec.default_broker_class`, or to
  `MTChannelBasedBroker` when that is empty. Nothing is changed when the
  spec's `br-defaults` or `config-br-defaults` config already names a broker
  class (see `default_broker_class_defined(data)`). Unparseable defaults raise
  `ValueError`.
- `knoperator.sinkbinding.sink_binding_selection_mode_transform(instance)` —
  sets `SINK_BINDING_SELECTION_MODE` on every container of the
  `eventing-webhook` Deployment. The value is `spec.sink_binding_selection_mode`,
  else the one given in the `eventing-webhook` container's env overrides
  (`selection_mode_from_workload_overrides(instance)`), else `exclusion`.
- `knoperator.pingsource.replicas_env_vars_transform(client)` — for the
  `pingsource-mt-adapter` Deployment, keeps the replica count of the live copy
  and its preserved env vars (`PRESERVED_ENV_VARS`), then adds the new env
  vars not already kept. The client has a `get(resource)` method that returns
  the live resource or raises `NotFoundError`; in that case the resource is
  left alone.
- `knoperator.sources` — finds eventing source manifests under
  `$KO_DATA_PATH/eventing-source/<major.minor>`:
  - `get_source_path(version, instance)` — paths of the enabled sources,
    comma separated;
  - `all_source_path(version)` — paths of every bundled source directory;
  - `load_manifest(paths)` — loads the YAML/JSON documents from
    comma-separated files or directories, raising `FileNotFoundError` for a
    missing path;
  - `append_target_sources(manifest, instance)` and
    `append_all_sources(manifest, instance)` — return a new list of resources
    with the sources added.

## Example

```python
import yaml
from knoperator.broker import default_broker_configmap_transform
from knoperator.sinkbinding import sink_binding_selection_mode_transform
from knoperator.spec import KnativeEventing, KnativeEventingSpec

with open("manifest.yaml") as fh:
    resources = [doc for doc in yaml.safe_load_all(fh) if doc]

instance = KnativeEventing(
    spec=KnativeEventingSpec(default_broker_class="MyBroker",
                             sink_binding_selection_mode="inclusion")
)
transforms = [
    default_broker_configmap_transform(instance),
    sink_binding_selection_mode_transform(instance),
]
for resource in resources:
    for transform in transforms:
        transform(resource)
```

## What it does not do

- It does not apply workload overrides (labels, annotations, replicas, node
  selectors, tolerations, affinity, resources, probes, host network) to
  Deployments, StatefulSets or Jobs. `WorkloadOverride` is read only to find
  the sink binding selection mode.
- It does not talk to a cluster, watch resources or reconcile them. There is
  no command and no controller: the caller loads the manifests, runs the
  transforms and applies the result, and supplies the client used by
  `replicas_env_vars_transform`.