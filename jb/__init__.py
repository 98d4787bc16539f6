"""Build, publish and deploy Juju bundles and the charms inside them."""

__version__ = "0.5.0"
