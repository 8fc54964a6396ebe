"""Built-in CLI sub-commands for discoli.

Each module exports one command callback registered on the root app:

* :mod:`~discoli.commands.list` -- browse services, resources, and methods.
* :mod:`~discoli.commands.desc` -- describe a service, resource, or method.
* :mod:`~discoli.commands.exec` -- call an API method.
* :mod:`~discoli.commands.update` -- rebuild and store resource trees.
"""
