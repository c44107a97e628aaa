"""Fixed names, limits and layout constants."""

# Per-image pull bound
PULL_TIMEOUT_SECONDS = 30

# Helm values.yaml readiness poll
READINESS_INTERVAL_SECONDS = 1.0
READINESS_ATTEMPTS = 20

# Filelist permissions (installer compatibility contract, not the on-disk mode)
FILE_PERMISSIONS = "0666"
DIR_PERMISSIONS = "0777"

# Installer package naming
CPK_PREFIX = "cpk.rbd"
CPK_EXTENSION = ".cpk"
FILELIST_NAME = "filelist"
METADATA_NAME = "metadata.json"

# Default installer-package app resources
DEFAULT_CPUS = 0.128

# Helm image_handle option value that embeds images regardless of mode
IMAGE_HANDLE_SAVE = "image_save"

# Identity fields assigned by a cluster, stripped before replay
CLUSTER_IDENTITY_FIELDS = ("namespace", "resourceVersion", "uid", "creationTimestamp")

YAML_DOCUMENT_SEPARATOR = "---\n"
