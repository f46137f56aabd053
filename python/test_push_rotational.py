"""
Rotational tests for push operations.

Each test is automatically run in all 4 cardinal directions (N/S/E/W) by rotating
the containers, placements, push direction and expectations of a scenario.

## Usage

Write a scenario pushing in one direction, with `moved`/`blocked` on the PUSH
line and EXPECT lines for the resulting positions:

```python
test = RotationalTestCase(
    name="push_simple",
    script='''
        define box #room size (3,1)
        define box #a solid
        place #a at (0,0) in #room
        push #a east moved
        expect #a at (1,0) in #room
    ''',
)
run_rotational_test(test)
```

Containers entered from another container use the middle of the entry edge, so
scenarios that cross into a gateway keep its sizes odd.
"""

from nestgrid import Outcome, TerminationReason
from test_rotations import RotationalTestCase, run_rotational_test


class TestPushRotational:
    """Rotational tests for push operation."""

    def test_push_simple_to_empty(self) -> None:
        """Push 2 boxes ending at an empty cell - all 4 directions."""
        test = RotationalTestCase(
            name="push_simple_to_empty",
            script="""
                define box #room size (3,1)
                define box #a solid
                define box #b solid
                place #a at (0,0) in #room
                place #b at (1,0) in #room
                push #a east moved
                expect #a at (1,0) in #room
                expect #b at (2,0) in #room
            """,
        )
        run_rotational_test(test)

    def test_push_blocked_by_wall(self) -> None:
        test = RotationalTestCase(
            name="push_blocked_by_wall",
            script="""
                define box #room size (4,3)
                define box #a solid
                define box #b solid
                define wall #w
                place #a at (0,1) in #room
                place #b at (1,1) in #room
                place #w at (2,1) in #room
                push #a east blocked
                push #a east blocked
                expect #a at (0,1) in #room
                expect #b at (1,1) in #room
            """,
        )
        run_rotational_test(test)

    def test_push_blocked_at_edge(self) -> None:
        test = RotationalTestCase(
            name="push_blocked_at_edge",
            script="""
                define box #room size (3,2)
                define box #a solid
                define box #b solid
                place #a at (1,0) in #room
                place #b at (2,0) in #room
                push #a east blocked
                push #b west moved
                expect #a at (0,0) in #room
                expect #b at (1,0) in #room
            """,
        )
        run_rotational_test(test)

    def test_push_solid_container(self) -> None:
        """A solid container moves like any box, contents untouched."""
        test = RotationalTestCase(
            name="push_solid_container",
            script="""
                define box #room size (3,3)
                define box #a solid
                define box #crate size (2,2) solid
                define box #inside solid
                place #a at (0,1) in #room
                place #crate at (1,1) in #room
                place #inside at (1,0) in #crate
                push #a east moved
                expect #crate at (2,1) in #room
                expect #inside at (1,0) in #crate
            """,
        )
        run_rotational_test(test)

    def test_push_alias_reference(self) -> None:
        """The reference cell moves; the aliased box keeps its own placement."""
        test = RotationalTestCase(
            name="push_alias_reference",
            script="""
                define box #room size (3,1)
                define box #shelf size (1,1)
                define box #a solid
                define box #b solid
                define alias #b_ref ref #b
                place #a at (0,0) in #room
                place #b_ref at (1,0) in #room
                place #b at (0,0) in #shelf
                expect #b_ref at (1,0) in #room
                push #a east moved
                expect #a at (1,0) in #room
                expect #b_ref at (2,0) in #room
                expect #b at (0,0) in #shelf
            """,
        )
        run_rotational_test(test)


class TestCycleGatewayRotational:
    """Rotational tests for pushes through self-containing containers."""

    def test_push_into_self_containing_alias(self) -> None:
        test = RotationalTestCase(
            name="push_into_self_containing_alias",
            script="""
                define box #container size (5,5)
                define box #outer_box solid
                define wall #wall
                define box #cycle size (5,5)
                define alias #cycle_ref ref #cycle
                define box #box1 solid
                define box #box2 solid
                define box #box3 solid
                define wall #inner_wall
                place #outer_box at (3,2) in #container
                place #wall at (1,2) in #container
                place #cycle_ref at (2,2) in #container
                place #cycle at (1,2) in #cycle
                place #box1 at (2,2) in #cycle
                place #box2 at (3,2) in #cycle
                place #box3 at (4,2) in #cycle
                place #inner_wall at (0,2) in #cycle
                push #outer_box west moved
                expect #outer_box at (3,2) in #container
                expect #box1 at (4,2) in #cycle
                expect #box2 at (2,2) in #cycle
                expect #box3 at (3,2) in #cycle
                expect #cycle at (1,2) in #cycle
            """,
        )
        run_rotational_test(test)

    def test_gateway_interior_absorbs_into_empty(self) -> None:
        test = RotationalTestCase(
            name="gateway_interior_absorbs_into_empty",
            script="""
                define box #container size (5,5)
                define box #outer_box solid
                define box #cycle size (5,5)
                define alias #cycle_ref ref #cycle
                define box #box1 solid
                define box #box2 solid
                place #outer_box at (3,2) in #container
                place #cycle_ref at (2,2) in #container
                place #cycle at (0,0) in #cycle
                place #box1 at (3,2) in #cycle
                place #box2 at (4,2) in #cycle
                push #outer_box west moved
                expect #outer_box at (3,2) in #container
                expect #box1 at (2,2) in #cycle
                expect #box2 at (3,2) in #cycle
            """,
        )
        run_rotational_test(test)

    def test_even_sized_gateway_entry(self) -> None:
        """Entering a 4x4 gateway picks the rotated middle cell in every direction."""
        test = RotationalTestCase(
            name="even_sized_gateway_entry",
            script="""
                define box #room size (3,3)
                define box #o solid
                define box #g size (4,4)
                define alias #g_ref ref #g
                define box #c solid
                place #o at (2,1) in #room
                place #g_ref at (1,1) in #room
                place #g at (0,0) in #g
                place #c at (3,2) in #g
                push #o west moved
                expect #o at (2,1) in #room
                expect #c at (2,2) in #g
                expect #g at (0,0) in #g
            """,
        )
        run_rotational_test(test)

    def test_swap_through_own_placement(self) -> None:
        test = RotationalTestCase(
            name="swap_through_own_placement",
            script="""
                define box #loop size (3,3)
                define box #a solid
                define box #b solid
                place #a at (0,1) in #loop
                place #b at (1,1) in #loop
                place #loop at (2,1) in #loop
                push #a east moved
                expect #a at (1,1) in #loop
                expect #b at (0,1) in #loop
                push #b east moved
                expect #a at (0,1) in #loop
                expect #b at (1,1) in #loop
            """,
        )
        run_rotational_test(test)

    def test_gateway_with_nothing_behind_it(self) -> None:
        test = RotationalTestCase(
            name="gateway_with_nothing_behind_it",
            script="""
                define box #room size (3,3)
                define box #a solid
                define box #g size (1,1)
                define alias #g_ref ref #g
                place #a at (0,1) in #room
                place #g_ref at (1,1) in #room
                place #g at (0,0) in #g
                push #a east blocked
                expect #a at (0,1) in #room
            """,
        )
        run_rotational_test(test)

    def test_rotations_share_outcome_details(self) -> None:
        """The detailed result matches across rotations, not just the outcome."""
        test = RotationalTestCase(
            name="rotations_share_outcome_details",
            script="""
                define box #loop size (3,3)
                define box #a solid
                place #a at (1,1) in #loop
                place #loop at (2,1) in #loop
            """,
        )
        reasons = set()
        for world, direction in zip(run_rotational_test(test), ["east", "south", "west", "north"]):
            result = world.push_detailed("a", direction)
            assert result.outcome == Outcome.MOVED
            assert world.position_of("a") != world.position_of("loop")
            reasons.add(result.reason)
        assert len(reasons) == 1
        assert TerminationReason.EMPTY_REACHED in reasons
