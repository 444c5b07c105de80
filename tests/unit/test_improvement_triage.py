"""Unit tests for improvement triage."""

import pytest

from agentforge.governance import ImprovementTriage, build_request, is_eligible, priority_for
from agentforge.learning import ImprovementOpportunity, OpportunityType
from agentforge.persistence import Level, RequestStatus, RequestType


def _opportunity(relevance=80, risk=Level.LOW, cost=Level.MEDIUM, type_=OpportunityType.API,
                 description="Add support for a new scheduling API"):
    return ImprovementOpportunity(
        type=type_,
        name=description[:100],
        description=description,
        relevance=relevance,
        estimated_benefit="Improve email capabilities",
        implementation_cost=cost,
        risk_level=risk,
    )


@pytest.fixture
def triage(store, clock):
    return ImprovementTriage(store, reproposal_cooldown_days=30, clock=clock)


class TestEligibility:

    @pytest.mark.parametrize(
        "relevance, risk, expected",
        [
            (60, Level.LOW, False),
            (69, Level.LOW, False),
            (70, Level.LOW, True),
            (75, Level.LOW, True),
            (75, Level.MEDIUM, True),
            (90, Level.HIGH, False),
        ],
    )
    def test_gate(self, relevance, risk, expected):
        assert is_eligible(_opportunity(relevance=relevance, risk=risk)) is expected

    @pytest.mark.parametrize("relevance, expected", [(85, Level.HIGH), (84, Level.MEDIUM), (70, Level.MEDIUM)])
    def test_priority(self, relevance, expected):
        assert priority_for(relevance) == expected


class TestBuildRequest:

    @pytest.mark.parametrize(
        "type_, request_type",
        [
            (OpportunityType.API, RequestType.NEW_API),
            (OpportunityType.TOOL, RequestType.NEW_TOOL),
            (OpportunityType.SKILL, RequestType.NEW_SKILL),
            (OpportunityType.FRAMEWORK, RequestType.PROCESS_CHANGE),
            (OpportunityType.BEST_PRACTICE, RequestType.PROCESS_CHANGE),
        ],
    )
    def test_request_type_mapping(self, type_, request_type):
        assert build_request("agent-1", _opportunity(type_=type_)).request_type == request_type

    @pytest.mark.parametrize("cost, estimate", [(Level.LOW, 5), (Level.MEDIUM, 15), (Level.HIGH, 30)])
    def test_cost_estimate(self, cost, estimate):
        assert build_request("agent-1", _opportunity(cost=cost)).cost_estimate == estimate

    def test_fields(self):
        request = build_request("agent-1", _opportunity(relevance=90))

        assert request.agent_id == "agent-1"
        assert request.title == "Add support for a new scheduling API"
        assert request.description == "Add support for a new scheduling API"
        assert request.benefit_estimate == "Improve email capabilities"
        assert request.risk_level == Level.LOW
        assert request.priority == Level.HIGH
        assert request.status == RequestStatus.PENDING


class TestProposeIfEligible:

    def test_eligible_opportunity_creates_pending_request(self, triage, store, agent):
        assert triage.propose_if_eligible(agent.id, _opportunity(relevance=75)) is True

        pending = store.list_pending_improvement_requests(agent.id)
        assert len(pending) == 1
        assert pending[0].request_type == RequestType.NEW_API
        assert pending[0].cost_estimate == 15
        assert pending[0].priority == Level.MEDIUM

    @pytest.mark.parametrize("relevance, risk", [(60, Level.LOW), (90, Level.HIGH)])
    def test_ineligible_opportunity_is_dropped(self, triage, store, agent, relevance, risk):
        assert triage.propose_if_eligible(agent.id, _opportunity(relevance=relevance, risk=risk)) is False
        assert store.list_requests(agent.id) == []

    def test_identical_pending_request_is_not_duplicated(self, triage, store, agent):
        assert triage.propose_if_eligible(agent.id, _opportunity()) is True
        assert triage.propose_if_eligible(agent.id, _opportunity()) is False
        assert len(store.list_pending_improvement_requests(agent.id)) == 1

    def test_recently_rejected_request_is_not_reproposed(self, triage, store, agent, clock):
        triage.propose_if_eligible(agent.id, _opportunity())
        request = store.list_pending_improvement_requests(agent.id)[0]
        store.reject_request(request.id, "bob", "Not now")

        clock.advance(days=10)
        assert triage.propose_if_eligible(agent.id, _opportunity()) is False

        clock.advance(days=25)
        assert triage.propose_if_eligible(agent.id, _opportunity()) is True

    def test_approved_request_does_not_block_new_proposals(self, triage, store, agent):
        triage.propose_if_eligible(agent.id, _opportunity())
        store.approve_request(store.list_pending_improvement_requests(agent.id)[0].id, "alice")

        assert triage.propose_if_eligible(agent.id, _opportunity()) is True

    def test_zero_cooldown_allows_immediate_reproposal(self, store, agent, clock):
        triage = ImprovementTriage(store, reproposal_cooldown_days=0, clock=clock)
        triage.propose_if_eligible(agent.id, _opportunity())
        store.reject_request(store.list_pending_improvement_requests(agent.id)[0].id, "bob", "No")

        assert triage.propose_if_eligible(agent.id, _opportunity()) is True
