"""Unit tests for plan actions performed against a live registry."""

from __future__ import annotations

import pytest

from registryman.config.enums import (
    MemberRole,
    MemberType,
    ReplicationDirection,
    ReplicationTriggerType,
)
from registryman.config.status import (
    ReplicationRuleStatus,
    ReplicationTrigger,
    ScannerStatus,
)
from registryman.config.store import GlobalRegistryOptions
from registryman.errors import RecoverableError
from registryman.reconciler.actions import (
    MemberAdd,
    MemberRemove,
    ProjectAdd,
    ProjectRemove,
    ReplRuleAdd,
    ReplRuleRemove,
    ScannerAssign,
    ScannerUnassign,
)
from registryman.reconciler.side_effects import (
    NO_SIDE_EFFECT,
    PersistMemberCredentials,
    RemoveMemberCredentials,
)
from tests.helpers.fakes import FakeLiveRegistry, ProjectsOnlyRegistry
from tests.helpers.fleet_builders import make_registry, member_status

PUSH_TO_LOCAL = ReplicationRuleStatus(
    remote_registry_name="local",
    trigger=ReplicationTrigger(type=ReplicationTriggerType.EVENT_BASED),
    direction=ReplicationDirection.PUSH,
)
FLEET = {"local": make_registry("local")}


class TestDescriptions:
    """One-line descriptions shown in dry runs and logs."""

    @pytest.mark.parametrize(
        ("action", "text"),
        [
            (ProjectAdd("ubuntu"), "adding project ubuntu"),
            (ProjectRemove("ubuntu"), "removing project ubuntu"),
            (
                MemberAdd("ubuntu", member_status("alpha")),
                "adding member alpha to ubuntu",
            ),
            (
                MemberRemove("ubuntu", member_status("alpha")),
                "removing member alpha from ubuntu",
            ),
            (
                ReplRuleAdd("ubuntu", PUSH_TO_LOCAL),
                "adding replication rule for ubuntu: local [Push] on EventBased",
            ),
            (
                ScannerAssign("ubuntu", ScannerStatus(name="trivy")),
                "assigning scanner trivy to project ubuntu",
            ),
            (
                ScannerUnassign("ubuntu", ScannerStatus(name="trivy")),
                "unassigning scanner trivy from project ubuntu",
            ),
        ],
    )
    def test_describe(self, action: object, text: str) -> None:
        """Each action names what it changes."""
        assert action.describe() == text  # type: ignore[attr-defined]


class TestProjectActions:
    """Creating and deleting projects."""

    @pytest.mark.asyncio
    async def test_add_creates_project(self, hub_live: FakeLiveRegistry) -> None:
        """The project exists after ProjectAdd."""
        assert await ProjectAdd("ubuntu").perform(hub_live, FLEET) is NO_SIDE_EFFECT
        assert [p.name for p in hub_live.projects] == ["ubuntu"]

    @pytest.mark.asyncio
    async def test_add_existing_project_succeeds(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """A conflict on creation counts as success."""
        hub_live.add_project("ubuntu")
        assert await ProjectAdd("ubuntu").perform(hub_live, FLEET) is NO_SIDE_EFFECT
        assert len(hub_live.projects) == 1

    @pytest.mark.asyncio
    async def test_remove_refuses_non_empty_project(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """Projects holding repositories survive without force delete."""
        hub_live.options = GlobalRegistryOptions()
        hub_live.add_project("ubuntu", repositories=["ubuntu/base"])
        with pytest.raises(RecoverableError, match="repositories are present"):
            await ProjectRemove("ubuntu").perform(hub_live, FLEET)
        assert [p.name for p in hub_live.projects] == ["ubuntu"]

    @pytest.mark.asyncio
    async def test_force_delete_removes_non_empty_project(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """Force delete lets non-empty projects go."""
        hub_live.options = GlobalRegistryOptions(force_delete=True)
        hub_live.add_project("ubuntu", repositories=["ubuntu/base"])
        await ProjectRemove("ubuntu").perform(hub_live, FLEET)
        assert hub_live.projects == []

    @pytest.mark.asyncio
    async def test_remove_missing_project(self, hub_live: FakeLiveRegistry) -> None:
        """Acting on a vanished project is recoverable."""
        with pytest.raises(RecoverableError, match="project ubuntu not found"):
            await ProjectRemove("ubuntu").perform(hub_live, FLEET)

    @pytest.mark.asyncio
    async def test_registry_without_creation_skips(self) -> None:
        """Registries lacking the creation trait do nothing."""
        live = ProjectsOnlyRegistry("mirror")
        assert await ProjectAdd("ubuntu").perform(live, FLEET) is NO_SIDE_EFFECT


class TestMemberActions:
    """Adding and removing project members."""

    @pytest.mark.asyncio
    async def test_robot_add_yields_credentials(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """New robots hand back credentials to persist."""
        hub_live.add_project("app-images")
        robot = member_status("ci", MemberRole.PUSH_ONLY, member_type=MemberType.ROBOT)

        effect = await MemberAdd("app-images", robot).perform(hub_live, FLEET)

        assert isinstance(effect, PersistMemberCredentials)
        assert effect.filename == "global_app-images_ci_creds.yaml"
        assert effect.credentials.username == "robot$app-images+ci"

    @pytest.mark.asyncio
    async def test_user_add_has_no_side_effect(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """Users and groups never touch the store."""
        project = hub_live.add_project("ubuntu")
        alpha = member_status("alpha")
        assert await MemberAdd("ubuntu", alpha).perform(hub_live, FLEET) is (
            NO_SIDE_EFFECT
        )
        assert project.members == [alpha]

    @pytest.mark.asyncio
    async def test_duplicate_member_counts_as_success(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """An AlreadyExists response leaves the member in place."""
        alpha = member_status("alpha")
        hub_live.add_project("ubuntu", members=[alpha])
        assert await MemberAdd("ubuntu", alpha).perform(hub_live, FLEET) is (
            NO_SIDE_EFFECT
        )

    @pytest.mark.asyncio
    async def test_robot_removal_removes_credentials(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """Removing a robot schedules its credentials file for removal."""
        robot = member_status("ci", MemberRole.PUSH_ONLY, member_type=MemberType.ROBOT)
        project = hub_live.add_project("ubuntu", members=[robot])

        effect = await MemberRemove("ubuntu", robot).perform(hub_live, FLEET)

        assert effect == RemoveMemberCredentials("global", "ubuntu", "ci")
        assert project.members == []


class TestReplicationActions:
    """Creating and deleting replication rules."""

    @pytest.mark.asyncio
    async def test_add_rule_towards_declared_remote(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """The remote registry is looked up in the declared fleet."""
        project = hub_live.add_project("ubuntu")
        await ReplRuleAdd("ubuntu", PUSH_TO_LOCAL).perform(hub_live, FLEET)
        [rule] = project.rules
        assert rule.remote_registry_name == "local"
        assert rule.direction is ReplicationDirection.PUSH

    @pytest.mark.asyncio
    async def test_add_rule_towards_unknown_remote(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """Undeclared remotes are recoverable failures."""
        hub_live.add_project("ubuntu")
        with pytest.raises(RecoverableError, match="registry local not found"):
            await ReplRuleAdd("ubuntu", PUSH_TO_LOCAL).perform(hub_live, {})

    @pytest.mark.asyncio
    async def test_remove_matches_full_trigger(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """Only the rule whose schedule matches is deleted."""
        project = hub_live.add_project("ubuntu")
        hourly = ReplicationTrigger.cron("0 * * * *")
        frequent = ReplicationTrigger.cron("*/5 * * * *")
        for trigger in (hourly, frequent):
            await project.assign_replication_rule(
                FLEET["local"], trigger, ReplicationDirection.PULL
            )
        doomed = ReplicationRuleStatus(
            remote_registry_name="local",
            trigger=frequent,
            direction=ReplicationDirection.PULL,
        )

        await ReplRuleRemove("ubuntu", doomed).perform(hub_live, FLEET)

        assert [r.trigger for r in project.rules] == [hourly]

    @pytest.mark.asyncio
    async def test_remove_keeps_other_directions(
        self, hub_live: FakeLiveRegistry
    ) -> None:
        """Rules towards the same remote in another direction survive."""
        project = hub_live.add_project("ubuntu")
        await project.assign_replication_rule(
            FLEET["local"], PUSH_TO_LOCAL.trigger, ReplicationDirection.PULL
        )
        await project.assign_replication_rule(
            FLEET["local"], PUSH_TO_LOCAL.trigger, ReplicationDirection.PUSH
        )

        await ReplRuleRemove("ubuntu", PUSH_TO_LOCAL).perform(hub_live, FLEET)

        assert [r.direction for r in project.rules] == [ReplicationDirection.PULL]


class TestScannerActions:
    """Binding scanners to projects."""

    @pytest.mark.asyncio
    async def test_assign_and_unassign(self, hub_live: FakeLiveRegistry) -> None:
        """Scanner binding follows assign and unassign."""
        trivy = ScannerStatus(name="trivy", url="http://trivy:8080")
        project = hub_live.add_project("ubuntu")
        await ScannerAssign("ubuntu", trivy).perform(hub_live, FLEET)
        assert project.scanner == trivy
        await ScannerUnassign("ubuntu", trivy).perform(hub_live, FLEET)
        assert project.scanner is None
