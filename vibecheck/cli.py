"""
Command-Line Interface for VibeCheck
====================================

Usage:
    python -m vibecheck.cli <command> [options]

Commands:
    check       Check the table store connection
    setup-sql   Print the SQL that provisions the tables
    room        Show a room: who was before you and the collective playlist
    submit      Submit your three songs to a room
    search      Song suggestions for a partial title
    vibe        AI summary of a room's vibe
    whoami      Show this installation's anonymous id

Examples:
    python -m vibecheck.cli room 1
    python -m vibecheck.cli room "#12" --format json
    python -m vibecheck.cli submit 1 --current "Blue - Artist A" --favorite "Red - Artist B" --underrated "Green"
    python -m vibecheck.cli search "blue mon"
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .aggregation import build_playlist, pick_previous_entry, room_stats
from .enrichment import VibeEnricher
from .errors import EmptySongError
from .gateway import MISSING_TABLE, SETUP_SQL, RoomGateway
from .models import AppState, RoomData, Song
from .session import RoomSession, parse_room_fragment
from .spotify_client import SongLookupClient


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='vibecheck',
        description='🎵 VibeCheck - build a playlist from everyone in the room',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  SUPABASE_URL           Supabase project URL
  SUPABASE_ANON_KEY      Supabase anon key
  SPOTIFY_CLIENT_ID      Spotify API client ID (song suggestions)
  SPOTIFY_CLIENT_SECRET  Spotify API client secret
  GEMINI_API_KEY         Gemini API key (optional AI features)
        """
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('check', help='Check the table store connection')
    sub.add_parser('setup-sql', help='Print the table provisioning SQL')
    sub.add_parser('whoami', help='Show the anonymous user id')

    room = sub.add_parser('room', help='Show a room')
    room.add_argument('room', help='Room id, e.g. 1 or #1')
    room.add_argument(
        '--format',
        choices=['simple', 'json'],
        default='simple',
        help='Output format (default: simple)'
    )

    submit = sub.add_parser('submit', help='Submit your songs to a room')
    submit.add_argument('room', help='Room id, e.g. 1 or #1')
    submit.add_argument('--current', required=True, help='What you are listening to ("Title - Artist")')
    submit.add_argument('--favorite', required=True, help='Your all-time favorite ("Title - Artist")')
    submit.add_argument('--underrated', required=True, help='Your underrated pick ("Title - Artist")')
    submit.add_argument(
        '--resolve',
        action='store_true',
        help='Let the AI fill in exact titles, artists and Spotify links'
    )
    submit.add_argument(
        '--force',
        action='store_true',
        help='Submit even if you already did within the last hour'
    )

    search = sub.add_parser('search', help='Song suggestions')
    search.add_argument('query', help='Partial song title')

    vibe = sub.add_parser('vibe', help="AI summary of a room's vibe")
    vibe.add_argument('room', help='Room id, e.g. 1 or #1')

    return parser


def format_room(data: RoomData, user_id: Optional[str], fmt: str) -> str:
    """Format the results view of a room."""
    previous = pick_previous_entry(data.entries, user_id=user_id)
    playlist = build_playlist(data.entries)
    stats = room_stats(data.entries)

    if fmt == 'json':
        return json.dumps({
            "roomId": data.room_id,
            "roomName": data.display_name,
            "totalEntries": stats.total_entries,
            "uniqueSongs": stats.unique_songs,
            "previous": None if previous is None else {
                "current": previous.current.to_dict(),
                "favorite": previous.favorite.to_dict(),
                "underrated": previous.underrated.to_dict(),
                "submittedAt": previous.created_at.isoformat(),
            },
            "playlist": [track.to_dict() for track in playlist],
        }, indent=2)

    lines = [
        f"🎵 {data.display_name}",
        f"   Entries: {stats.total_entries} | Unique songs: {stats.unique_songs}",
        "",
        "Before you:",
        "-" * 50,
    ]
    if previous is None:
        lines.append("   You are the first one here! Start the trend.")
    else:
        lines.append(f"   Listening to:   {previous.current.display()}")
        lines.append(f"   All-time fav:   {previous.favorite.display()}")
        lines.append(f"   Underrated:     {previous.underrated.display()}")
        lines.append(f"   Submitted {previous.created_at.astimezone().strftime('%H:%M')}")

    lines.extend(["", f"Collective Playlist (Top {len(playlist)} Tracks):", "-" * 50])
    if not playlist:
        lines.append("   Not enough data yet. Add more songs to build the playlist!")
    for i, track in enumerate(playlist, 1):
        lines.append(f"{i:2}. {track.title}")
        lines.append(f"    Artist: {track.artist}")
        lines.append(f"    {track.reason}")
        if track.source_url:
            lines.append(f"    {track.source_url}")
    return '\n'.join(lines)


def _room_id_or_exit(value: str) -> Optional[str]:
    room_id = parse_room_fragment(value)
    if room_id is None:
        print(f"❌ Error: invalid room id {value!r} (expected a number)", file=sys.stderr)
    return room_id


def _require_songs(args) -> None:
    for slot in ("current", "favorite", "underrated"):
        if not getattr(args, slot).strip():
            raise EmptySongError(slot)


def _resolve_songs(args) -> List[Song]:
    songs = [Song.parse(args.current), Song.parse(args.favorite), Song.parse(args.underrated)]
    if not args.resolve:
        return songs

    print("  → Resolving songs...")
    resolved = VibeEnricher().resolve_song_metadata(args.current, args.favorite, args.underrated)
    if resolved is None:
        print("  → AI resolution unavailable, using songs as typed")
        return songs
    return [resolved["current"], resolved["favorite"], resolved["underrated"]]


def cmd_check(gateway: RoomGateway, args) -> int:
    status = gateway.check_connection()
    if status.reachable:
        print("✅ System Operational")
        return 0
    print(f"❌ Connection Failed: {status.message}", file=sys.stderr)
    if status.reason_code == MISSING_TABLE:
        print("", file=sys.stderr)
        print("The tables have not been created yet. Run the output of", file=sys.stderr)
        print("  python -m vibecheck.cli setup-sql", file=sys.stderr)
        print("in your Supabase SQL Editor, then retry.", file=sys.stderr)
    return 1


def cmd_room(gateway: RoomGateway, args) -> int:
    room_id = _room_id_or_exit(args.room)
    if room_id is None:
        return 1
    data = gateway.get_room_data(room_id)
    print(format_room(data, gateway.identity.get_or_create_user_id(), args.format))
    return 0


def cmd_submit(gateway: RoomGateway, args) -> int:
    room_id = _room_id_or_exit(args.room)
    if room_id is None:
        return 1
    _require_songs(args)

    session = RoomSession(gateway)
    state = session.join_room(room_id)
    if state is AppState.RESULTS and not args.force:
        print("ℹ️  You already submitted to this room within the last hour (use --force to submit again).")
        print()
        print(format_room(session.room_data, gateway.identity.get_or_create_user_id(), 'simple'))
        return 0

    current, favorite, underrated = _resolve_songs(args)
    data = session.submit(current, favorite, underrated)
    print("✅ Entry saved")
    print()
    print(format_room(data, gateway.identity.get_or_create_user_id(), 'simple'))
    return 0


def cmd_search(args) -> int:
    songs = SongLookupClient().search(args.query)
    if not songs:
        print("No suggestions.")
        return 0
    for i, song in enumerate(songs, 1):
        print(f"{i}. {song.display()}")
        if song.source_url:
            print(f"   {song.source_url}")
    return 0


def cmd_vibe(gateway: RoomGateway, args) -> int:
    room_id = _room_id_or_exit(args.room)
    if room_id is None:
        return 1
    data = gateway.get_room_data(room_id)
    vibe = VibeEnricher().generate_room_vibe(data.entries)
    if vibe is None:
        print("AI vibe unavailable right now.")
        return 0

    print(f"✨ {vibe.vibe_name}")
    print(f"   {vibe.description}")
    print()
    for i, track in enumerate(vibe.playlist, 1):
        print(f"{i:2}. {track.title} - {track.artist}")
        print(f"    Why: {track.reason}")
        if track.source_url:
            print(f"    {track.source_url}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == 'setup-sql':
        print(SETUP_SQL)
        return 0

    try:
        if args.command == 'search':
            return cmd_search(args)

        gateway = RoomGateway()
        if args.command == 'whoami':
            print(gateway.identity.get_or_create_user_id())
            return 0
        if args.command == 'check':
            return cmd_check(gateway, args)
        if args.command == 'room':
            return cmd_room(gateway, args)
        if args.command == 'submit':
            return cmd_submit(gateway, args)
        if args.command == 'vibe':
            return cmd_vibe(gateway, args)
    except Exception as e:
        print(f"❌ Error: {str(e)}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1

    parser.error(f"unknown command {args.command!r}")
    return 2


if __name__ == '__main__':
    sys.exit(main())
