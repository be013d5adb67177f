"""
liac module

Locust IaC: control a Locust load-generation fleet running on AWS EC2.

This module contains:
 - actions that change the state of the fleet by dispatching shell commands
   through AWS Systems Manager run-command (actions directory)
 - probes that read fleet state from the EC2 inventory, such as the address of
   the Locust master (probes directory)
 - common types, defaults and errors (common directory)
 - the run-command dispatcher (execute directory)
 - the command-line interface (cli.py)

Instances are grouped by tags attached outside of this tool. A fleet
membership tag (Locust=true by default) marks every instance that belongs to
the fleet. A state tag (LocustState by default) marks exactly one instance as
'master' and any number as 'worker'.

Workers must be told where the master lives, so starting workers first looks
up the master's private address in the inventory. Every other action goes
straight from building its command lines to dispatching them.

liac keeps no state between invocations. It does not wait for, poll or stream
the output of the commands it dispatches: run-command returns a command id and
execution continues on the instances.
"""

__version__ = '0.1.0'
