"""
Epic router: epic interpretation and task routing for multi-agent workflows.

Given a work item (issue number, title, body, labels, assignees), the router
classifies its domain and complexity, estimates risk, and produces a routing
decision naming the downstream workers, the execution strategy and the
provider profile to use. It never executes the routed work itself.
"""

__version__ = "0.1.0"
