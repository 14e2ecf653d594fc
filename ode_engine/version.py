PACKAGE_NAME = "ode-engine"
PACKAGE_VERSION = "0.1.0"
PACKAGE_AUTHOR = "ode-engine developers"
