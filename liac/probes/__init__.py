"""
liac 'probes' module.

Probes read fleet state from the EC2 inventory and never change it.
"""
