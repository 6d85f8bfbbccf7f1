"""Tests for core data models."""

import pytest

from election.errors import ElectionDataError
from election.models import (
    BallotRecord,
    CandidateResult,
    ChoiceType,
    Election,
    ElectionStatus,
    PositionConfig,
    Registration,
    TieAnalysis,
    TieGroup,
)


class TestElectionFromDict:
    def test_positions_mapping_keeps_order(self):
        election = Election.from_dict({
            "id": "e1",
            "name": "Board Election",
            "status": "open",
            "positions": {
                "treasurer": {"name": "Treasurer", "maxWinners": 1},
                "members": {"name": "Members", "maxWinners": 3},
            },
        })
        assert election.position_ids == ["treasurer", "members"]
        assert election.positions["members"] == PositionConfig("members", "Members", 3)
        assert election.status is ElectionStatus.OPEN

    def test_positions_list(self):
        election = Election.from_dict({
            "id": "e1",
            "positions": [
                {"id": "chair", "name": "Chair", "seatCount": 1},
                {"id": "board", "maxWinners": 2},
            ],
        })
        assert election.position_ids == ["chair", "board"]
        assert election.positions["board"].name == "board"
        assert election.name == "e1"
        assert election.status is ElectionStatus.CLOSED

    def test_missing_id(self):
        with pytest.raises(ElectionDataError, match="no id"):
            Election.from_dict({"positions": {"chair": {"maxWinners": 1}}})

    def test_no_positions(self):
        with pytest.raises(ElectionDataError, match="no positions") as exc_info:
            Election.from_dict({"id": "e1", "positions": {}})
        assert exc_info.value.election_id == "e1"

    @pytest.mark.parametrize("seats", [None, 0, -1, "2", True, 1.5])
    def test_invalid_seat_count(self, seats):
        with pytest.raises(ElectionDataError) as exc_info:
            Election.from_dict({"id": "e1", "positions": {"chair": {"maxWinners": seats}}})
        assert exc_info.value.election_id == "e1"

    def test_malformed_position(self):
        with pytest.raises(ElectionDataError, match="Malformed"):
            Election.from_dict({"id": "e1", "positions": {"chair": 1}})

    def test_unknown_status(self):
        with pytest.raises(ElectionDataError, match="status"):
            Election.from_dict({"id": "e1", "status": "archived", "positions": {"chair": {"maxWinners": 1}}})

    def test_get_unknown_position(self):
        election = Election.from_dict({"id": "e1", "positions": {"chair": {"maxWinners": 1}}})
        with pytest.raises(ElectionDataError, match="Unknown position"):
            election.get_position("board")


class TestRegistrationFromDict:
    def test_full_record(self):
        reg = Registration.from_dict({
            "userId": 17,
            "userDisplayName": "Ada",
            "firstChoicePosition": "chair",
            "secondChoicePosition": "board",
        })
        assert reg == Registration("17", "Ada", "chair", "board")
        assert reg.positions() == [("chair", ChoiceType.FIRST), ("board", ChoiceType.SECOND)]

    def test_no_second_choice(self):
        reg = Registration.from_dict({"userId": "u1", "firstChoicePosition": "chair"})
        assert reg.second_choice is None
        assert reg.display_name == "u1"
        assert reg.positions() == [("chair", ChoiceType.FIRST)]

    def test_missing_first_choice(self):
        with pytest.raises(ElectionDataError):
            Registration.from_dict({"userId": "u1"})


class TestBallotRecordFromDict:
    def test_votes_mapping(self):
        record = BallotRecord.from_dict({"positionId": "chair", "votes": {"v1": ["a"]}})
        assert record == BallotRecord("chair", {"v1": ["a"]})

    def test_votes_not_a_mapping(self):
        record = BallotRecord.from_dict({"positionId": "chair", "votes": ["a", "b"]})
        assert record.votes == {}

    def test_missing_position(self):
        assert BallotRecord.from_dict({"votes": {}}).position_id == ""


class TestTieAnalysis:
    def test_empty(self):
        analysis = TieAnalysis()
        assert not analysis.has_ties
        assert analysis.tied_ids == frozenset()
        assert analysis.to_dict() == {"hasTies": False, "tieGroups": []}

    def test_tied_ids(self):
        analysis = TieAnalysis(tie_groups=(TieGroup("chair", 1, ("a", "b"), 5, 1),))
        assert analysis.has_ties
        assert analysis.tied_ids == frozenset({"a", "b"})


class TestCandidateResult:
    def test_to_dict_before_status(self):
        c = CandidateResult("a", "Ada", ChoiceType.SECOND, vote_count=2)
        assert c.to_dict()["status"] is None
        assert c.to_dict()["choiceType"] == "second"
        assert not c.is_first_choice
