"""Scenario catalog and client command construction."""

import shlex
from dataclasses import dataclass, field
from pathlib import Path

from protobench.errors import InvalidInput
from protobench.models import BenchConfig, Protocol

# Scenario -> client executable, as installed alongside the servers
SCENARIO_MAP: dict[str, str] = {
    "baseline": "bench-client",
    "burst": "bench-burst",
    "cold_vs_resumed": "bench-coldstart",
    "parallel_streams": "bench-parallel",
    "header_bloat": "bench-header-bloat",
    "uplink_loss": "bench-uplink",
    "connection_churn": "bench-churn",
    "nat_rebinding": "bench-migration",
    "mixed_load": "bench-mixed",
    "stress_test": "bench-stress",
}

SCENARIO_FLAGS: dict[str, list[str]] = {
    "cold_vs_resumed": ["--mode", "cold"],
}


@dataclass
class ClientCommand:
    """Fully resolved invocation of one protocol variant."""

    protocol: Protocol
    argv: list[str]
    artifact: Path
    env: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return shlex.join(self.argv)


def known_scenarios() -> list[str]:
    return list(SCENARIO_MAP)


def validate_scenario(scenario: str) -> str:
    if scenario not in SCENARIO_MAP:
        raise InvalidInput(
            f"Invalid scenario '{scenario}'. Valid: {', '.join(known_scenarios())}"
        )
    return scenario


def client_executable(config: BenchConfig, scenario: str) -> list[str]:
    validate_scenario(scenario)
    override = config.clients.get(scenario)
    if override:
        return shlex.split(override)
    return [SCENARIO_MAP[scenario]]


def build_client_command(
    config: BenchConfig, scenario: str, protocol: Protocol, artifact: Path
) -> ClientCommand:
    """Build the argv for one variant; both variants differ only in address and --h3."""
    argv = [
        *client_executable(config, scenario),
        "--addr",
        config.targets.address_for(protocol),
        f"--h3={'true' if protocol.use_h3 else 'false'}",
        "--csv",
        str(artifact),
    ]
    if config.runner.quiet:
        argv.append("--quiet")
    argv.extend(SCENARIO_FLAGS.get(scenario, []))
    return ClientCommand(protocol=protocol, argv=argv, artifact=artifact, env=dict(config.runner.env))


def build_server_command(config: BenchConfig, protocol: Protocol) -> list[str]:
    return shlex.split(config.servers.command_for(protocol))
