"""Actionable error catalog for local-postgresql."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "runtime_unavailable": {
        "what": "Docker is not reachable while starting {image}: {cause}",
        "next": "Start the Docker daemon (or set DOCKER_HOST) and try again.",
    },
    "port_in_use": {
        "what": "Host port {port} is already in use; cannot start {image}.",
        "next": "Stop the process bound to port {port} or choose another `container.port`.",
    },
    "image_pull_failed": {
        "what": "Could not pull image {image}: {cause}",
        "next": "Check the image reference, registry credentials and network access.",
    },
    "start_failed": {
        "what": "Container for {image} (port {port}) failed to start: {cause}",
        "next": "Check the container output under the `local_postgresql.container` logger (set `container.log.follow: true` if it is off) and retry.",
    },
    "readiness_timeout": {
        "what": "PostgreSQL in {image} (port {port}) was not ready after {timeout}s.",
        "next": "Raise `container.startup.timeout` or check available Docker resources.",
    },
    "init_script_not_found": {
        "what": "Init script not found: {path}",
        "next": "Fix `database.init.script` so it points to an existing SQL file.",
    },
    "init_script_failed": {
        "what": "Init script {path} failed{location}: {cause}",
        "next": "The container was left running; inspect it, fix the script and provision again.",
    },
    "application_user_incomplete": {
        "what": "Only `{present}` is set; the application user needs both username and password.",
        "next": "Set `{missing}` as well, or remove `{present}` to connect as the admin user.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
