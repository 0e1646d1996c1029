#!/usr/bin/env python3
"""
Example 01: Issue Tracker Workflow

Your first statewright machine! This example teaches:
- Building a machine in code and from a YAML workflow
- Initializing and advancing stateful objects
- Vetoing a transition with a pre-trigger
- Choosing transitions with the property-match selector
- Exporting the machine graph and rebuilding it

Run: python examples/01_issue_tracker.py
"""

from pathlib import Path

from statewright import (
    StatefulObject,
    StateMachine,
    StateMachineBuilder,
    build_machine,
    configure_logging,
    register_trigger,
)


class Ticket(StatefulObject):
    """A ticket with a title that must be filled in before it can be opened."""

    __slots__ = ("title",)

    def __init__(self, name: str, title: str = "") -> None:
        super().__init__(name)
        self.title = title


class RequireTitle:
    """Pre-trigger: refuse to open tickets without a title."""

    def on_transition(self, transition: str, obj: Ticket, *data: object) -> str | None:
        if not obj.title:
            return f"{obj.name} needs a title before it can be opened"
        return None


def build_in_code() -> StateMachine:
    """Declare the workflow transition by transition."""
    return (
        StateMachineBuilder()
        .with_name("issue-tracker")
        .with_transition("submit", to_state="submitted")
        .with_transition(
            "open", from_states="submitted", to_state="opened", pre_trigger="require-title"
        )
        # the first transition declared from a state is its default
        .with_transition("resolve", from_states="opened", to_state="resolved")
        .with_transition("resubmit", from_states="opened", to_state="submitted")
        .with_transition("close", from_states="resolved", to_state="closed")
        .with_transition("reject", from_states="resolved", to_state="opened")
        .create()
    )


def main() -> None:
    """Demonstrate building and driving an issue tracker workflow."""
    configure_logging(level="WARNING", format="console")
    register_trigger("require-title", RequireTitle)

    print("Example 01: Issue Tracker Workflow")
    print("=" * 50)

    # Step 1: build in code and veto an untitled ticket
    print("\nBuilding the machine in code...")
    machine = build_in_code()
    print(f"   {machine!r}")

    ticket = Ticket("TCK-1")
    machine.initialize(ticket)
    print(f"   {ticket.name} is {ticket.current_state}")

    veto = machine.advance(ticket)
    print(f"   open vetoed: {veto}")
    print(f"   {ticket.name} is still {ticket.current_state}")

    ticket.title = "Login page is blank"
    machine.advance(ticket)
    print(f"   {ticket.name} is now {ticket.current_state}")

    # Step 2: jump ahead; the default path is followed up to 'close'
    machine.invoke_transition("close", ticket)
    print(f"   after close: {ticket.current_state}, done={machine.is_done(ticket)}")

    # Step 3: load the YAML workflow using the property-match selector
    print("\nLoading the YAML workflow...")
    workflow_machine = build_machine(Path(__file__).with_name("issue_tracker.yaml"))
    other = StatefulObject("TCK-2")
    workflow_machine.initialize(other)
    workflow_machine.advance(other)
    workflow_machine.advance(other, {"needs_info": True})
    print(f"   with needs_info the ticket went back to {other.current_state}")
    workflow_machine.advance(other)
    workflow_machine.advance(other)
    workflow_machine.advance(other, {"verdict": "rejected"})
    print(f"   a rejected resolution reopens it: {other.current_state}")

    # Step 4: export and rebuild
    print("\nRound-tripping through the graph...")
    graph = workflow_machine.as_graph()
    rebuilt = StateMachine.from_graph(graph)
    print(f"   states: {sorted(rebuilt.state_names)}")
    print(f"   end states: {rebuilt.end_states}")


if __name__ == "__main__":
    main()
