"""Tests for blackboard, message bus and handoff primitives."""

from agent_team.communication import (
    Blackboard,
    MessageBus,
    create_handoff,
    create_team_context,
    format_handoff_input,
)
from agent_team.protocol import AgentResponse


class TestMessageBus:
    def test_send_and_receive(self):
        bus = MessageBus()
        bus.send("a", "b", "hello")
        bus.send("c", "b", "hi")
        bus.send("b", "a", "reply")

        inbox = bus.get_for("b")

        assert [(m.from_agent, m.content) for m in inbox] == [("a", "hello"), ("c", "hi")]
        assert bus.get_for("nobody") == []

    def test_get_from_and_all(self):
        bus = MessageBus()
        bus.send("a", "b", "one")
        bus.send("a", "c", "two")
        bus.send("b", "a", "three")

        assert [m.content for m in bus.get_from("a")] == ["one", "two"]
        assert len(bus.all()) == 3

    def test_all_returns_a_copy(self):
        bus = MessageBus()
        bus.send("a", "b", "one")

        bus.all().clear()

        assert len(bus) == 1

    def test_clear(self):
        bus = MessageBus()
        bus.send("a", "b", "one")
        bus.clear()
        assert bus.all() == []

    def test_messages_are_timestamped(self):
        message = MessageBus().send("a", "b", "one")
        assert message.timestamp > 0


class TestBlackboard:
    def test_set_get_has_delete(self):
        board = Blackboard()
        board.set("plan", {"steps": [1, 2]})

        assert board.get("plan") == {"steps": [1, 2]}
        assert board.has("plan")
        assert "plan" in board
        assert board.get("missing") is None
        assert board.get("missing", "default") == "default"
        assert board.delete("plan") is True
        assert board.delete("plan") is False
        assert not board.has("plan")

    def test_bracket_access_and_clear(self):
        board = Blackboard()
        board["k"] = "v"

        assert board["k"] == "v"
        assert board.keys() == ["k"]
        board.clear()
        assert len(board) == 0

    def test_to_dict_is_a_copy(self):
        board = Blackboard({"a": 1})
        snapshot = board.to_dict()
        snapshot["b"] = 2
        assert not board.has("b")


class TestHandoff:
    def test_create_handoff(self):
        response = AgentResponse(text="research notes", agent_name="researcher")

        handoff = create_handoff("researcher", "writer", response, instructions="Keep it short")

        assert handoff.from_agent == "researcher"
        assert handoff.to_agent == "writer"
        assert handoff.output == "research notes"
        assert handoff.instructions == "Keep it short"

    def test_format_without_instructions(self):
        handoff = create_handoff("a", "b", AgentResponse(text="output"))
        assert format_handoff_input(handoff) == "[Handoff from a]\n\noutput"

    def test_format_with_instructions(self):
        handoff = create_handoff("a", "b", AgentResponse(text="output"), "Polish")
        assert format_handoff_input(handoff) == "[Handoff from a]\n\noutput\n\n[Instructions: Polish]"


class TestTeamContext:
    def test_context_binds_bus_and_board(self):
        board, bus = Blackboard(), MessageBus()
        previous = [AgentResponse(text="earlier", agent_name="a")]

        context = create_team_context(board, bus, current_round=2, previous_results=previous)
        context.send_message("a", "b", "ping")
        context.blackboard.set("x", 1)

        assert context.current_round == 2
        assert context.previous_results == previous
        assert [m.content for m in context.get_messages("b")] == ["ping"]
        assert len(bus) == 1
        assert board.get("x") == 1
