from wipecall.wcl.models import (
    Attempt,
    AttemptEvents,
    CharacterRanking,
    DamageTableEntry,
    RawDeathEvent,
    Session,
)


def test_attempt_from_api_payload():
    attempt = Attempt.model_validate({
        "id": 12,
        "name": "Patchwerk",
        "encounterID": 1118,
        "startTime": 100_000,
        "endTime": 283_500,
        "kill": False,
        "difficulty": 4,
        "fightPercentage": 23.4,
        "friendlyPlayers": [1, 2, 3],
    })
    assert attempt.encounter_id == 1118
    assert attempt.duration_seconds == 183.5
    assert attempt.fight_percentage == 23.4
    assert attempt.friendly_players == [1, 2, 3]


def test_attempt_defaults():
    attempt = Attempt.model_validate(
        {"id": 1, "name": "Patchwerk", "startTime": 0, "endTime": 1000}
    )
    assert attempt.kill is False
    assert attempt.encounter_id == 0
    assert attempt.difficulty is None
    assert attempt.friendly_players is None


def test_session_find_attempt():
    session = Session.model_validate({
        "code": "abc123",
        "title": "Naxx",
        "startTime": 1_700_000_000_000,
        "fights": [
            {"id": 1, "name": "Patchwerk", "startTime": 0, "endTime": 1000},
            {"id": 4, "name": "Grobbulus", "startTime": 2000, "endTime": 5000},
        ],
    })
    assert session.find_attempt(4).name == "Grobbulus"
    assert session.find_attempt(99) is None


def test_raw_death_event_aliases():
    event = RawDeathEvent.model_validate({
        "timestamp": 5000,
        "type": "death",
        "sourceID": -1,
        "targetID": 3,
        "killerID": 50,
        "killingAbilityGameID": 28308,
        "ability": {"name": "Hateful Strike", "guid": 28308, "type": 1},
    })
    assert event.target_id == 3
    assert event.killer_id == 50
    assert event.killing_ability_game_id == 28308
    assert event.ability.name == "Hateful Strike"


def test_attempt_events_directories():
    events = AttemptEvents.model_validate({
        "attempt": {"id": 1, "name": "Patchwerk", "startTime": 0, "endTime": 1000},
        "actors": [{"id": 1, "name": "Lyro", "type": "Player", "icon": "Warrior-Arms"}],
        "abilities": [{"gameID": 28308, "name": "Hateful Strike"}],
    })
    assert events.actor_directory()[1].name == "Lyro"
    assert events.ability_directory() == {28308: "Hateful Strike"}


def test_attempt_events_without_master_data():
    events = AttemptEvents.model_validate(
        {"attempt": {"id": 1, "name": "Patchwerk", "startTime": 0, "endTime": 1000}}
    )
    assert events.actor_directory() is None
    assert events.ability_directory() is None


def test_damage_table_entry_ignores_extra_keys():
    entry = DamageTableEntry.model_validate({
        "name": "Lyro", "id": 1, "guid": 123, "type": "Warrior",
        "icon": "Warrior-Arms", "total": 123456, "activeTime": 90000,
    })
    assert entry.total == 123456
    assert entry.icon == "Warrior-Arms"


def test_character_ranking_class_alias():
    ranking = CharacterRanking.model_validate(
        {"name": "Someone", "class": "Mage", "spec": "Frost", "amount": 2345.6}
    )
    assert ranking.class_name == "Mage"
    assert ranking.amount == 2345.6
