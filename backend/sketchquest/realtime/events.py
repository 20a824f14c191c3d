# Inbound (client -> server)
CREATE_GAME = "create_game"
JOIN_GAME = "join_game"
LEAVE_GAME = "leave_game"
START_ROUND = "start_round"
WORD_CHOSEN = "word_chosen"
GUESS = "guess"
DRAWING_DATA = "drawing_data"

# Outbound (server -> clients)
PLAYERS = "players"
CHOOSE_WORD = "choose_word"
ROUND_STARTED = "round_started"
DRAWER_WORD = "drawer_word"
CORRECT_GUESS = "correct_guess"
CHAT_MESSAGE = "chat_message"
ROUND_END = "round_end"
NEXT_ROUND_STARTING = "next_round_starting"
GAME_OVER = "game_over"
