"""
Built-in interest catalog.

Raw taxonomy document consumed by `taxonomy.load_taxonomy`. Ids are stable:
they are stored in user profiles, so renaming one orphans existing selections.
"""


def _tags(*pairs: tuple[str, str] | tuple[str, str, str]) -> list[dict]:
    tags = []
    for pair in pairs:
        tag = {"id": pair[0], "label": pair[1]}
        if len(pair) == 3:
            tag["icon"] = pair[2]
        tags.append(tag)
    return tags


# =============================================================================
# Sports
# =============================================================================

SPORTS = {
    "id": "sports",
    "key": "sports",
    "label": "Sports",
    "icon": "🏅",
    "color": "emerald-500",
    "sub_category_prompt": "Please pick a sport for Sports (or choose Other Sport and name it).",
    "follow_up_helper_text": "Tell us who you follow so updates focus on what matters to you.",
    "sub_categories": [
        {
            "id": "sports_cricket",
            "label": "Cricket",
            "icon": "🏏",
            "tags": _tags(
                ("cricket_international", "International Matches"),
                ("cricket_ipl", "IPL"),
                ("cricket_test", "Test Cricket"),
                ("cricket_t20_world_cup", "T20 World Cup"),
            ),
            "popular_answers": {
                "favTeam": _tags(
                    ("favTeam_india", "India"),
                    ("favTeam_australia", "Australia"),
                    ("favTeam_england", "England"),
                    ("favTeam_csk", "Chennai Super Kings"),
                    ("favTeam_mi", "Mumbai Indians"),
                ),
                "favPlayer": _tags(
                    ("favPlayer_kohli", "Virat Kohli"),
                    ("favPlayer_bumrah", "Jasprit Bumrah"),
                    ("favPlayer_cummins", "Pat Cummins"),
                    ("favPlayer_root", "Joe Root"),
                ),
            },
        },
        {
            "id": "sports_football",
            "label": "Football",
            "icon": "⚽",
            "tags": _tags(
                ("football_premier_league", "Premier League"),
                ("football_champions_league", "Champions League"),
                ("football_la_liga", "La Liga"),
                ("football_world_cup", "World Cup"),
                ("football_transfers", "Transfer Window"),
            ),
            "popular_answers": {
                "favTeam": _tags(
                    ("favTeam_man_utd", "Manchester United"),
                    ("favTeam_liverpool", "Liverpool"),
                    ("favTeam_real_madrid", "Real Madrid"),
                    ("favTeam_barcelona", "Barcelona"),
                    ("favTeam_arsenal", "Arsenal"),
                ),
                "favPlayer": _tags(
                    ("favPlayer_messi", "Lionel Messi"),
                    ("favPlayer_ronaldo", "Cristiano Ronaldo"),
                    ("favPlayer_haaland", "Erling Haaland"),
                    ("favPlayer_mbappe", "Kylian Mbappé"),
                ),
            },
        },
        {
            "id": "sports_basketball",
            "label": "Basketball",
            "icon": "🏀",
            "tags": _tags(
                ("basketball_nba", "NBA"),
                ("basketball_euroleague", "EuroLeague"),
                ("basketball_playoffs", "Playoffs Only"),
            ),
            "popular_answers": {
                "favTeam": _tags(
                    ("favTeam_lakers", "LA Lakers"),
                    ("favTeam_warriors", "Golden State Warriors"),
                    ("favTeam_celtics", "Boston Celtics"),
                ),
            },
        },
        {
            "id": "sports_tennis",
            "label": "Tennis",
            "icon": "🎾",
            "tags": _tags(
                ("tennis_grand_slams", "Grand Slams"),
                ("tennis_atp", "ATP Tour"),
                ("tennis_wta", "WTA Tour"),
            ),
            "popular_answers": {
                "favPlayer": _tags(
                    ("favPlayer_alcaraz", "Carlos Alcaraz"),
                    ("favPlayer_sinner", "Jannik Sinner"),
                    ("favPlayer_swiatek", "Iga Świątek"),
                    ("favPlayer_djokovic", "Novak Djokovic"),
                ),
            },
        },
        {
            "id": "sports_f1",
            "label": "Formula 1",
            "icon": "🏎️",
            "tags": _tags(
                ("f1_race_results", "Race Results"),
                ("f1_qualifying", "Qualifying"),
                ("f1_team_news", "Team & Driver News"),
            ),
            "popular_answers": {
                "favTeam": _tags(
                    ("favTeam_ferrari", "Ferrari"),
                    ("favTeam_mclaren", "McLaren"),
                    ("favTeam_red_bull", "Red Bull Racing"),
                    ("favTeam_mercedes", "Mercedes"),
                ),
            },
        },
        {
            "id": "sports_other",
            "label": "Other Sport",
            "icon": "➕",
            "is_other_placeholder": True,
        },
    ],
    "follow_up_questions": [
        {
            "id": "favTeam",
            "text": "Any favourite teams you want to follow closely?",
            "has_other_option": True,
        },
        {
            "id": "favPlayer",
            "text": "Any players you never want to miss news about?",
            "has_other_option": True,
        },
        {
            "id": "updateType",
            "text": "What kind of sports updates do you like?",
            "predefined_answer_tags": _tags(
                ("updateType_live_scores", "Live scores"),
                ("updateType_highlights", "Match highlights"),
                ("updateType_analysis", "Expert analysis"),
                ("updateType_transfers", "Transfers & rumours"),
            ),
            "has_other_option": True,
        },
    ],
    "popular_instruction_tags": _tags(
        ("instr_sports_my_team", "Only when my team plays"),
        ("instr_sports_no_spoilers", "No spoilers before I watch"),
        ("instr_sports_final_scores", "Final scores only"),
    ),
}


# =============================================================================
# Movies & TV
# =============================================================================

MOVIES_TV = {
    "id": "moviesTV",
    "key": "moviesTV",
    "label": "Movies & TV",
    "icon": "🎬",
    "color": "rose-500",
    "sub_categories": [
        {
            "id": "movies_genres",
            "label": "Movie Genres",
            "tags": _tags(
                ("movie_action", "Action", "💥"),
                ("movie_comedy", "Comedy", "😂"),
                ("movie_drama", "Drama", "🎭"),
                ("movie_scifi", "Sci-Fi", "🚀"),
                ("movie_horror", "Horror", "👻"),
                ("movie_documentary", "Documentary", "🎥"),
            ),
        },
        {
            "id": "tv_shows",
            "label": "TV Shows",
            "tags": _tags(
                ("tv_drama_series", "Drama Series"),
                ("tv_sitcoms", "Sitcoms"),
                ("tv_reality", "Reality TV"),
                ("tv_anime", "Anime"),
            ),
        },
        {
            "id": "streaming_platforms",
            "label": "Streaming Platforms",
            "tags": _tags(
                ("stream_netflix", "Netflix"),
                ("stream_prime", "Prime Video"),
                ("stream_disney", "Disney+"),
                ("stream_max", "Max"),
            ),
        },
    ],
    "follow_up_questions": [
        {
            "id": "contentType",
            "text": "What would you like to hear about?",
            "predefined_answer_tags": _tags(
                ("contentType_releases", "New releases"),
                ("contentType_trailers", "Trailers"),
                ("contentType_reviews", "Reviews"),
                ("contentType_box_office", "Box office"),
            ),
            "has_other_option": True,
        },
    ],
    "popular_instruction_tags": _tags(
        ("instr_movies_no_spoilers", "Avoid spoilers"),
        ("instr_movies_top_rated", "Only highly rated titles"),
        ("instr_movies_weekend", "Weekend watch suggestions"),
    ),
}


# =============================================================================
# News
# =============================================================================

NEWS = {
    "id": "news",
    "key": "news",
    "label": "News",
    "icon": "📰",
    "color": "sky-500",
    "tags": _tags(
        ("elections", "Elections"),
        ("world_affairs", "World Affairs"),
        ("technology", "Technology"),
        ("business", "Business & Markets"),
        ("science", "Science"),
        ("health", "Health"),
        ("climate", "Climate"),
        ("local_news", "Local News"),
    ),
    "follow_up_questions": [
        {
            "id": "newsDepth",
            "text": "How deep should your news updates go?",
            "predefined_answer_tags": _tags(
                ("newsDepth_headlines", "Headlines only"),
                ("newsDepth_summaries", "Short summaries"),
                ("newsDepth_analysis", "In-depth analysis"),
            ),
            "has_other_option": True,
        },
    ],
    "popular_instruction_tags": _tags(
        ("instr_news_positive", "Positive news only"),
        ("instr_news_no_gossip", "No celebrity gossip"),
        ("instr_news_sources", "Cite reputable sources"),
    ),
}


# =============================================================================
# YouTube
# =============================================================================

YOUTUBE = {
    "id": "youtube",
    "key": "youtube",
    "label": "YouTube",
    "icon": "▶️",
    "color": "red-600",
    "sub_categories": [
        {
            "id": "youtube_genres",
            "label": "Content Types",
            "tags": _tags(
                ("yt_tech_reviews", "Tech Reviews"),
                ("yt_gaming", "Gaming"),
                ("yt_education", "Education"),
                ("yt_music", "Music"),
                ("yt_cooking", "Cooking"),
                ("yt_vlogs", "Vlogs"),
            ),
        },
        {
            "id": "youtube_duration",
            "label": "Video Length",
            "exclusive": True,
            "tags": _tags(
                ("yt_duration_short", "Under 5 minutes"),
                ("yt_duration_medium", "5-20 minutes"),
                ("yt_duration_long", "20+ minutes"),
            ),
        },
    ],
    "follow_up_questions": [
        {
            "id": "favCreators",
            "text": "Which creators do you already follow?",
            "has_other_option": True,
        },
    ],
    "popular_instruction_tags": _tags(
        ("instr_yt_new_uploads", "New uploads only"),
        ("instr_yt_no_sponsored", "Skip sponsored content"),
    ),
}


# =============================================================================
# Custom interests (no per-category preferences)
# =============================================================================

CUSTOM = {
    "id": "custom",
    "label": "Custom Interests",
    "icon": "✨",
    "color": "violet-500",
    "popular_interest_tags": _tags(
        ("custom_knitting", "Knitting"),
        ("custom_roman_history", "Ancient Roman History"),
        ("custom_indie_games", "Indie Game Development"),
        ("custom_gardening", "Gardening"),
        ("custom_personal_finance", "Personal Finance"),
        ("custom_space", "Space Exploration"),
    ),
}


TAXONOMY_DATA = {
    "categories": [SPORTS, MOVIES_TV, NEWS, YOUTUBE, CUSTOM],
}
