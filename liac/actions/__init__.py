"""
liac 'actions' module.

This module contains *actions* that change the state of a Locust fleet:
clone or update the scripts repository, start and stop the Locust master and
workers.

*Actions* are built in two steps. A builder in liac.actions.commands turns the
fleet configuration into a CommandRequest (comment, ordered command lines and
target tags) without any network access. The functions in liac.actions.locust
then hand the request to a RemoteExecutor, resolving the master first when the
command needs its address.

*Actions* are not idempotent. Dispatching the same request twice runs it twice
on every targeted instance.

Things to consider when adding or modifying *actions*:
1. Quote every value that comes from configuration or from the inventory
   before placing it in a command line.
2. Check required settings with liac.common.require before any request is
   sent, so a missing setting never results in a half-formed command.
"""
