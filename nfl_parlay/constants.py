"""
NFL Parlay Constants

Stat types, positions and source-field aliases in one place. If logic depends
on a position or a stat key, it should reference these constants.
"""

# Tracked statistics in declared priority order (leg generation walks this order)
TRACKED_STATS = ['pass_yards', 'rush_yards', 'rec_yards', 'receptions', 'pass_tds']

# Alternate source keys mapped onto canonical stat names
STAT_ALIASES = {
    'passing_yards': 'pass_yards',
    'rushing_yards': 'rush_yards',
    'receiving_yards': 'rec_yards',
    'rec': 'receptions',
    'passing_tds': 'pass_tds',
    'pass_td': 'pass_tds',
}

# Usage inputs (not zero-filled: absence means "unknown" for the touches proxy)
USAGE_ALIASES = {
    'rushing_attempts': 'rush_attempts',
    'carries': 'rush_attempts',
}

# camelCase identifiers from JSON sources
FIELD_ALIASES = {
    'playerId': 'player_id',
    'playerName': 'player_name',
    'gameDate': 'game_date',
    'gameId': 'game_id',
}

IDENTITY_FIELDS = [
    'player_id', 'player_name', 'game_date', 'game_id', 'week', 'season',
    'team', 'opponent', 'position',
]

# Positions
PASSING_POSITIONS = ['QB']
RUSHING_ROLE_POSITIONS = ['RB']
RECEIVING_ROLE_POSITIONS = ['WR', 'TE']

# Game key when neither game id nor game date is known
UNKNOWN_GAME_KEY = 'unknown'

# Penalty category tags
PENALTY_SAME_GAME = 'same_game'
PENALTY_SAME_TEAM = 'same_team'
PENALTY_QB_WR_STACK = 'qb_wr_stack'

# Market inference for user-supplied legs
MARKET_POSITIONS = {
    'pass_yards': 'QB',
    'pass_tds': 'QB',
    'rec_yards': 'WR',
    'receptions': 'WR',
    'rush_yards': 'RB',
}

# Imported odds stat phrases
ODDS_STAT_ALIASES = {
    'passing yards': 'pass_yards',
    'pass yards': 'pass_yards',
    'rushing yards': 'rush_yards',
    'rush yards': 'rush_yards',
    'receiving yards': 'rec_yards',
    'rec yards': 'rec_yards',
    'receptions': 'receptions',
    'rec': 'receptions',
    'passing tds': 'pass_tds',
    'pass tds': 'pass_tds',
    'passing touchdowns': 'pass_tds',
}

# NFL calendar
REGULAR_SEASON_WEEKS = 18
