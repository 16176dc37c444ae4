from pathlib import Path

#
# Filesystem
#

DEPLOYMENT_DIR = Path(__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
NETWORK_CONFIG_DIR = DEPLOYMENT_DIR / "network_config"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

NETWORK_CONFIG_SUFFIXES = (".json", ".yml", ".yaml")

#
# Parameters
#

# logical names of the form "$Name", "$config:path" or "$manifest:Name"
VARIABLE_PREFIX = "$"
CONFIG_PREFIX = "config:"
MANIFEST_PREFIX = "manifest:"
DEPLOYER_INDICATOR = "deployer"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

#
# Registry
#

# revert reasons which indicate that a grantee is already in the registry's approved set
ALREADY_APPROVED_ERRORS = ("AlreadyApproved", "already approved")
