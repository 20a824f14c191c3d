def _events(sio_client, name):
    return [pkt["args"][0] for pkt in sio_client.get_received() if pkt["name"] == name]


def _received(sio_client):
    return sio_client.get_received()


def _create(host, name="Alice", **settings):
    payload = {"name": name, "avatar": "", **settings}
    return host.emit("create_game", payload, callback=True)


def test_create_and_join(sio_factory):
    host = sio_factory()
    guest = sio_factory()

    created = _create(host, maxPlayers=2, numRounds=1)
    code = created["room"]
    assert len(code) == 5

    ack = guest.emit("join_game", {"room": code, "name": "Bob", "avatar": ""}, callback=True)
    assert ack["ok"] is True
    assert ack["room"] == code
    assert ack["hostId"] == created["playerId"]

    rosters = _events(host, "players")
    assert [p["name"] for p in rosters[-1]] == ["Alice", "Bob"]


def test_join_full_room(sio_factory):
    host = sio_factory()
    code = _create(host, maxPlayers=2)["room"]
    sio_factory().emit("join_game", {"room": code, "name": "Bob"}, callback=True)

    ack = sio_factory().emit("join_game", {"room": code, "name": "Cy"}, callback=True)
    assert ack == {"error": "Room full"}


def test_join_unknown_room(sio_factory):
    ack = sio_factory().emit("join_game", {"room": "NOPE1", "name": "Bob"}, callback=True)
    assert ack == {"error": "Room not found"}


def test_only_host_can_start(sio_factory):
    host = sio_factory()
    guest = sio_factory()
    code = _create(host)["room"]
    guest.emit("join_game", {"room": code, "name": "Bob"}, callback=True)

    assert guest.emit("start_round", {"room": code}, callback=True) == {"error": "Only host can start"}
    assert host.emit("start_round", {"room": code}, callback=True) == {"ok": True}


def test_full_single_round_game(sio_factory):
    host = sio_factory()
    guest = sio_factory()
    code = _create(host, maxPlayers=2, numRounds=1)["room"]
    guest.emit("join_game", {"room": code, "name": "Bob"}, callback=True)
    _received(host)
    _received(guest)

    assert host.emit("start_round", {"room": code}, callback=True) == {"ok": True}
    assert _events(host, "choose_word") == [{"options": ["cat"]}]
    assert _events(guest, "choose_word") == []

    assert host.emit("word_chosen", {"room": code, "word": "cat"}, callback=True) == {"ok": True}
    host_events = _received(host)
    assert any(p["name"] == "drawer_word" and p["args"][0] == {"word": "cat"} for p in host_events)
    guest_events = _received(guest)
    assert not any(p["name"] == "drawer_word" for p in guest_events)
    started = [p["args"][0] for p in guest_events if p["name"] == "round_started"]
    assert started and started[0]["round"] == 1

    assert guest.emit("guess", {"room": code, "text": "wrong"}, callback=True) == {"correct": False}
    assert _events(host, "chat_message") == [{"name": "Bob", "text": "wrong"}]

    assert guest.emit("guess", {"room": code, "text": " CAT "}, callback=True) == {"correct": True}
    received = _received(host)
    names = [p["name"] for p in received]
    assert "correct_guess" in names
    assert "round_end" in names
    over = [p["args"][0] for p in received if p["name"] == "game_over"]
    assert len(over) == 1
    assert over[0]["winner"]["name"] == "Bob"
    assert [p["score"] for p in over[0]["players"]] == [10, 5]


def test_choose_word_rejects_unoffered_word(sio_factory):
    host = sio_factory()
    guest = sio_factory()
    code = _create(host)["room"]
    guest.emit("join_game", {"room": code, "name": "Bob"}, callback=True)
    host.emit("start_round", {"room": code}, callback=True)

    ack = host.emit("word_chosen", {"room": code, "word": "giraffe"}, callback=True)
    assert ack == {"ok": False, "error": "Word was not offered"}
    ack = guest.emit("word_chosen", {"room": code, "word": "cat"}, callback=True)
    assert ack == {"ok": False, "error": "Not your turn to choose"}


def test_drawing_is_relayed_to_guessers(sio_factory):
    host = sio_factory()
    guest = sio_factory()
    code = _create(host)["room"]
    guest.emit("join_game", {"room": code, "name": "Bob"}, callback=True)
    host.emit("start_round", {"room": code}, callback=True)
    host.emit("word_chosen", {"room": code, "word": "cat"}, callback=True)
    _received(host)
    _received(guest)

    host.emit("drawing_data", {"room": code, "data": {"x": 1, "y": 2}})
    assert _events(guest, "drawing_data") == [{"x": 1, "y": 2}]
    assert _events(host, "drawing_data") == []


def test_disconnect_updates_roster(sio_factory):
    host = sio_factory()
    guest = sio_factory()
    code = _create(host)["room"]
    guest.emit("join_game", {"room": code, "name": "Bob"}, callback=True)
    _received(host)

    guest.disconnect()
    rosters = _events(host, "players")
    assert [p["name"] for p in rosters[-1]] == ["Alice"]


def test_leave_game(sio_factory, client):
    host = sio_factory()
    code = _create(host)["room"]
    assert host.emit("leave_game", {"room": code}, callback=True) == {"ok": True}
    assert client.get(f"/api/rooms/{code}").status_code == 404
