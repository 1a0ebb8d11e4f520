"""
Acceptance test harness.

Drives the provider against a real subscription: builds randomized test
data, creates ephemeral resource groups (and host pools for application
groups), applies a sequence of configuration steps with checks after each
one, then destroys everything and verifies the resources are gone.

Acceptance runs are opt-in: ``ARM_ACC`` must be set along with the
service principal credentials and the test locations.
"""

import logging
import os
import random
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from azure.core.exceptions import AzureError
from azure.mgmt.desktopvirtualization.models import HostPool

from .exceptions import AvdProviderError, MissingConfigurationError, RemoteError
from .polling import await_completion
from .provider import Provider
from .state import ResourceData
from .state_store import split_address
from .timeout_config import Deadline, Timeouts

logger = logging.getLogger(__name__)

REQUIRED_ENVIRONMENT = (
    "ARM_CLIENT_ID",
    "ARM_CLIENT_SECRET",
    "ARM_SUBSCRIPTION_ID",
    "ARM_TENANT_ID",
    "ARM_TEST_LOCATION",
    "ARM_TEST_LOCATION_ALT",
)


@dataclass(frozen=True)
class Locations:
    primary: str
    secondary: str


@dataclass
class TestData:
    """Randomized names and locations for one acceptance test.

    Attributes:
        resource_type: Orchestrator type under test
        resource_label: Label of the instance under test
        random_integer: Suffix keeping names unique across runs
    """

    __test__ = False

    resource_type: str
    resource_label: str
    random_integer: int
    locations: Locations

    @property
    def resource_name(self) -> str:
        """Address of the instance under test, e.g. ``<type>.test``."""
        return f"{self.resource_type}.{self.resource_label}"

    @classmethod
    def build(
        cls,
        resource_type: str,
        resource_label: str = "test",
        environ: Optional[Mapping[str, str]] = None,
    ) -> "TestData":
        env = os.environ if environ is None else environ
        # yymmddHHMM followed by five random digits
        stamp = datetime.now(timezone.utc).strftime("%y%m%d%H%M")
        random_integer = int(f"{stamp}{random.randint(0, 99999):05d}")
        return cls(
            resource_type=resource_type,
            resource_label=resource_label,
            random_integer=random_integer,
            locations=Locations(
                primary=env.get("ARM_TEST_LOCATION", ""),
                secondary=env.get("ARM_TEST_LOCATION_ALT", ""),
            ),
        )


def acceptance_enabled(environ: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    return bool(env.get("ARM_ACC"))


def missing_prerequisites(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    env = os.environ if environ is None else environ
    return [key for key in REQUIRED_ENVIRONMENT if not env.get(key)]


def pre_check(environ: Optional[Mapping[str, str]] = None) -> None:
    """Verify an acceptance run can reach a real subscription.

    Raises:
        MissingConfigurationError: If required environment variables are unset
    """
    missing = missing_prerequisites(environ)
    if missing:
        raise MissingConfigurationError(
            f"Acceptance tests require: {', '.join(missing)}",
            missing_keys=missing,
        )


Check = Callable[["AcceptanceRun"], None]


@dataclass
class Step:
    """One apply in an acceptance test.

    ``config`` maps resource addresses to their configuration. Addresses
    tracked from earlier steps and absent here are destroyed. When
    ``expect_error`` is set the apply must fail with a message matching it.
    """

    config: Mapping[str, Mapping[str, Any]]
    checks: Sequence[Check] = field(default_factory=list)
    expect_error: Optional[str] = None


class AcceptanceRun:
    """Tracks everything one acceptance test created."""

    def __init__(self, provider: Provider, data: TestData) -> None:
        self.provider = provider
        self.data = data
        self.state: Dict[str, ResourceData] = {}
        self.created: List[Tuple[str, str]] = []
        self.resource_groups: List[str] = []

    def create_resource_group(self, name: str, location: str) -> str:
        """Create an ephemeral resource group, deleted when the run ends."""
        logger.info(f"Creating resource group {name} in {location}")
        try:
            group = self.provider.clients.resource_groups.create_or_update(
                name, {"location": location}
            )
        except AzureError as e:
            raise RemoteError(
                f"Error creating Resource Group {name!r}: {e}",
                resource_kind="Resource Group",
                name=name,
                cause=e,
            ) from e
        self.resource_groups.append(name)
        return group.id

    def create_host_pool(self, resource_group: str, name: str, location: str) -> str:
        """Create a pooled host pool for application group tests."""
        logger.info(f"Creating host pool {name} in {resource_group}")
        try:
            pool = self.provider.clients.desktop_virtualization.host_pools.create_or_update(
                resource_group,
                name,
                HostPool(
                    location=location,
                    host_pool_type="Pooled",
                    load_balancer_type="BreadthFirst",
                    preferred_app_group_type="Desktop",
                ),
            )
        except AzureError as e:
            raise RemoteError(
                f"Error creating Host Pool {name!r}: {e}",
                resource_kind="Host Pool",
                name=name,
                resource_group=resource_group,
                cause=e,
            ) from e
        return pool.id

    def apply(self, config: Mapping[str, Mapping[str, Any]]) -> None:
        for address in list(self.state):
            if address not in config:
                self.destroy(address)

        for address, values in config.items():
            resource_type, _ = split_address(address)
            state = self.provider.apply(resource_type, values, self.state.get(address))
            if state is not None and not state.is_new_resource():
                self.state[address] = state
                if (resource_type, state.id) not in self.created:
                    self.created.append((resource_type, state.id))

    def destroy(self, address: str) -> None:
        self.provider.destroy(self.state[address])
        del self.state[address]

    def destroy_all(self) -> None:
        for address in reversed(list(self.state)):
            self.destroy(address)

    def delete_resource_groups(self) -> None:
        """Delete every resource group created by this run."""
        for name in reversed(self.resource_groups):
            logger.info(f"Deleting resource group {name}")
            try:
                poller = self.provider.clients.resource_groups.begin_delete(name)
            except AzureError as e:
                logger.error(f"Failed to delete resource group {name}: {e}")
                continue
            outcome = await_completion(
                poller, Deadline(Timeouts.DELETE, operation="resource_group.delete")
            )
            if not outcome.succeeded:
                logger.error(
                    f"Deletion of resource group {name} ended {outcome.status.value}"
                )
        self.resource_groups = []

    def run_step(self, index: int, step: Step) -> None:
        try:
            self.apply(step.config)
        except AvdProviderError as e:
            if step.expect_error is None:
                raise
            if not re.search(step.expect_error, str(e)):
                raise AssertionError(
                    f"Step {index}: expected an error matching "
                    f"{step.expect_error!r}, got: {e}"
                ) from e
            logger.info(f"Step {index} failed as expected: {e.message}")
            return

        if step.expect_error is not None:
            raise AssertionError(
                f"Step {index}: expected an error matching {step.expect_error!r}, "
                "but the apply succeeded"
            )
        for check in step.checks:
            check(self)


def run_steps(
    provider: Provider,
    data: TestData,
    steps: Sequence[Step],
    setup: Optional[Callable[[AcceptanceRun], None]] = None,
    check_destroy: Optional[Check] = None,
) -> AcceptanceRun:
    """Run the steps in order, then destroy and verify destruction.

    Args:
        provider: Provider under test
        data: Test data for this run
        steps: Apply steps with their checks
        setup: Creates prerequisites (resource groups, host pools)
        check_destroy: Verification run after everything was destroyed
    """
    run = AcceptanceRun(provider, data)
    try:
        if setup is not None:
            setup(run)
        for index, step in enumerate(steps):
            run.run_step(index, step)
        run.destroy_all()
        (check_destroy or check_destroyed)(run)
    finally:
        if run.state:
            logger.warning(f"Cleaning up {len(run.state)} resource(s) after failure")
            try:
                run.destroy_all()
            except AvdProviderError as e:
                logger.error(f"Cleanup failed: {e}")
        run.delete_resource_groups()
    return run


def _tracked(run: AcceptanceRun, address: str) -> ResourceData:
    state = run.state.get(address)
    if state is None:
        raise AssertionError(f"Not found: {address}")
    return state


def check_exists(address: str) -> Check:
    """Check that the instance at ``address`` exists remotely.

    Not-found is a hard failure here, unlike the lifecycle read path.
    """

    def check(run: AcceptanceRun) -> None:
        state = _tracked(run, address)
        handler = run.provider.handler_for(state.resource_type)
        resource_id = handler.ID_TYPE.parse(state.id)
        if not run.provider.exists(state.resource_type, resource_id):
            raise AssertionError(
                f"Bad: {handler.DISPLAY_NAME} {resource_id.name!r} "
                f"(Resource Group: {resource_id.resource_group!r}) does not exist"
            )

    return check


def check_attr(address: str, key: str, expected: str) -> Check:
    """Check one attribute of the tracked instance.

    ``tags.%`` style keys compare the number of entries of a map attribute.
    """

    def check(run: AcceptanceRun) -> None:
        state = _tracked(run, address)
        if key.endswith(".%"):
            actual = str(len(state.get(key[:-2]) or {}))
        else:
            value = state.get(key)
            actual = "" if value is None else str(value)
        if actual != expected:
            raise AssertionError(
                f"{address}: Attribute {key!r} expected {expected!r}, got {actual!r}"
            )

    return check


def check_destroyed(run: AcceptanceRun) -> None:
    """Check that every instance the run created is gone."""
    for resource_type, resource_id in run.created:
        if run.provider.exists(resource_type, resource_id):
            display = run.provider.handler_for(resource_type).DISPLAY_NAME
            raise AssertionError(f"{display} still exists: {resource_id}")
