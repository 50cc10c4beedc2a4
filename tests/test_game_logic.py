from conftest import drain, payloads, settle

from trivia_backend.game_logic import handle_connect, handle_disconnect, handle_ws_message
from trivia_backend.lifecycle import RoomEventKind
from trivia_backend.schemas import ClientFrame


def send(state, user, event, data=None):
    handle_ws_message(state, user, ClientFrame(type=event, data=data))


def connect(state, make_user, nickname=None):
    user = make_user("")
    handle_connect(state, user)
    if nickname:
        send(state, user, "set nickname", nickname)
    drain(user)
    return user


# ---------------------------------------------------------------------------
# Nicknames
# ---------------------------------------------------------------------------

async def test_new_connection_is_asked_for_a_nickname(server_state, make_user):
    user = make_user("")
    handle_connect(server_state, user)

    assert [f["type"] for f in drain(user)] == ["need nickname"]
    assert user in server_state.users.users


async def test_good_nickname_enters_lobby(server_state, registry, make_user):
    room = registry.create_room("Open Room")
    await settle()
    user = make_user("")
    handle_connect(server_state, user)
    drain(user)

    send(server_state, user, "set nickname", "Alice")

    frames = drain(user)
    assert frames[0]["type"] == "good nickname"
    assert [r["id"] for r in payloads(frames, "room list")[0]] == [room.id]
    assert payloads(frames, "entered lobby") == [None]
    assert user.room is server_state.lobby


async def test_nickname_taken_ignores_case(server_state, make_user):
    connect(server_state, make_user, "Alice")
    user = connect(server_state, make_user)

    send(server_state, user, "set nickname", "aLiCe")

    assert [f["type"] for f in drain(user)] == ["nickname taken"]
    assert user.nickname == ""
    assert user.room is None


async def test_invalid_nicknames(server_state, settings, make_user):
    user = connect(server_state, make_user)

    for nickname in ("", "x" * (settings.nickname_max_length + 1), 42, None):
        send(server_state, user, "set nickname", nickname)

    assert [f["type"] for f in drain(user)] == ["invalid nickname"] * 4


async def test_nickname_cannot_change_once_set(server_state, make_user):
    user = connect(server_state, make_user, "Alice")

    send(server_state, user, "set nickname", "Bob")

    assert [f["type"] for f in drain(user)] == ["invalid nickname"]
    assert user.nickname == "Alice"


async def test_nameless_users_can_only_pick_a_nickname(server_state, registry, make_user):
    room = registry.create_room("Open Room")
    await settle()
    user = connect(server_state, make_user)

    send(server_state, user, "create room", {"name": "Sneaky"})
    send(server_state, user, "message", "hello?")
    send(server_state, user, "answer", 0)

    assert drain(user) == []
    assert registry.list_room_ids() == [room.id]


async def test_room_requested_before_nickname_is_joined_after(server_state, registry, make_user):
    room = registry.create_room("Linked Room")
    await settle()
    user = connect(server_state, make_user)

    send(server_state, user, "join room", room.id)
    assert user.room is None
    send(server_state, user, "set nickname", "Alice")

    frames = drain(user)
    assert frames[0]["type"] == "good nickname"
    assert payloads(frames, "entered game room") == [room.id]
    assert user.room is room


async def test_pending_join_for_vanished_room_falls_back_to_lobby(server_state, make_user):
    user = connect(server_state, make_user)

    send(server_state, user, "join room", "NOPE")
    send(server_state, user, "set nickname", "Alice")

    assert user.room is server_state.lobby


# ---------------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------------

async def test_create_room_applies_configuration(server_state, registry, supplier, make_user):
    user = connect(server_state, make_user, "Alice")

    send(
        server_state,
        user,
        "create room",
        {
            "name": "Maths",
            "categoryId": 19,
            "difficulty": "hard",
            "maxSeconds": 15,
            "canSkipQuestions": True,
            "questionCount": 10,
        },
    )
    await settle()

    room = user.room
    assert registry.get_room(room.id) is room
    assert room.name == "Maths"
    assert room.delete_on_empty is True
    assert room.config.category.name == "Science: Mathematics"
    assert room.config.difficulty == "hard"
    assert room.config.max_seconds == 15
    assert room.config.can_skip_questions is True
    assert room.config.question_count == 10
    assert supplier.calls == [room.id]
    frames = drain(user)
    assert payloads(frames, "left lobby") == [None]
    assert payloads(frames, "entered game room") == [room.id]


async def test_create_room_with_unknown_category_means_any(server_state, make_user):
    user = connect(server_state, make_user, "Alice")

    send(server_state, user, "create room", {"name": "Mystery", "categoryId": 9999, "difficulty": "any"})

    assert user.room.config.has_category() is False
    assert user.room.config.has_difficulty() is False
    assert user.room.summary().category_name == "Any"
    await settle()


async def test_invalid_create_room_is_ignored(server_state, registry, make_user):
    user = connect(server_state, make_user, "Alice")

    send(server_state, user, "create room", {"name": ""})
    send(server_state, user, "create room", {"name": "Bad", "maxSeconds": 0})
    send(server_state, user, "create room", {"name": "Bad", "difficulty": "legendary"})
    send(server_state, user, "create room", "not a dict")

    assert registry.list_rooms() == []
    assert user.room is server_state.lobby


async def test_join_unknown_room_is_ignored(server_state, make_user):
    user = connect(server_state, make_user, "Alice")

    send(server_state, user, "join room", "ZZZZZ")

    assert user.room is server_state.lobby
    assert drain(user) == []


async def test_leave_room_returns_to_lobby(server_state, registry, make_user):
    room = registry.create_room("Open Room", delete_on_empty=False)
    await settle()
    user = connect(server_state, make_user, "Alice")
    send(server_state, user, "join room", room.id)
    drain(user)

    send(server_state, user, "leave room")

    frames = drain(user)
    assert payloads(frames, "left game room") == [None]
    assert payloads(frames, "entered lobby") == [None]
    assert user.room is server_state.lobby
    assert not room.is_member(user)


async def test_leave_room_from_lobby_is_ignored(server_state, make_user):
    user = connect(server_state, make_user, "Alice")

    send(server_state, user, "leave room")

    assert drain(user) == []
    assert user.room is server_state.lobby


async def test_disconnect_removes_user_and_deletes_empty_room(server_state, registry, published, make_user):
    user = connect(server_state, make_user, "Alice")
    send(server_state, user, "create room", {"name": "Solo"})
    await settle()
    room = user.room

    handle_disconnect(server_state, user)

    assert user not in server_state.users.users
    assert registry.get_room(room.id) is None
    assert published[-1].kind is RoomEventKind.DELETED
    other = connect(server_state, make_user)
    send(server_state, other, "set nickname", "Alice")
    assert drain(other)[0]["type"] == "good nickname"


# ---------------------------------------------------------------------------
# In-room actions
# ---------------------------------------------------------------------------

async def test_messages_reach_everyone_in_the_room(server_state, make_user):
    alice = connect(server_state, make_user, "Alice")
    bob = connect(server_state, make_user, "Bob")
    drain(alice)

    send(server_state, alice, "message", "hi all")
    send(server_state, alice, "message", "")

    expected = [{"nickname": "Alice", "text": "hi all"}]
    assert payloads(drain(alice), "message") == expected
    assert payloads(drain(bob), "message") == expected


async def test_answer_is_routed_to_current_room(server_state, make_user):
    user = connect(server_state, make_user, "Alice")
    send(server_state, user, "create room", {"name": "Quiz"})
    await settle()

    send(server_state, user, "answer", 2)

    assert user.room.user_stats[user].selected_answer_index == 2


async def test_answer_in_lobby_is_ignored(server_state, make_user):
    user = connect(server_state, make_user, "Alice")

    send(server_state, user, "answer", 1)

    assert drain(user) == []


async def test_category_list(server_state, make_user):
    user = connect(server_state, make_user, "Alice")

    send(server_state, user, "get category list")

    assert payloads(drain(user), "category list") == [
        [{"id": 9, "name": "General Knowledge"}, {"id": 19, "name": "Science: Mathematics"}]
    ]


async def test_unknown_frame_types_are_ignored(server_state, make_user):
    user = connect(server_state, make_user, "Alice")

    send(server_state, user, "launch missiles", {"now": True})

    assert drain(user) == []


# ---------------------------------------------------------------------------
# Lobby
# ---------------------------------------------------------------------------

async def test_lobby_sees_room_lifecycle(server_state, make_user):
    watcher = connect(server_state, make_user, "Watcher")
    player = connect(server_state, make_user, "Player")
    drain(watcher)

    send(server_state, player, "create room", {"name": "Busy"})
    await settle()
    room_id = player.room.id
    send(server_state, player, "leave room")

    frames = [f for f in drain(watcher) if f["type"] in ("new room", "update room", "delete room")]
    assert [f["type"] for f in frames] == ["new room", "update room", "delete room"]
    assert frames[0]["data"]["id"] == room_id
    assert frames[0]["data"]["playerCount"] == 0
    assert frames[1]["data"]["playerCount"] == 1
    assert frames[2]["data"]["id"] == room_id
