#!/usr/bin/env python3
"""
doubles-scheduler -p 9 -c 2

  ―  ダブルス組み合わせ自動生成 CLI

使い方:
    doubles-scheduler -p 12 -c 3 -r 10
        -p / --players : プレーヤー人数 (4 以上)
        -c / --courts  : コート数 (1 以上)
        -r / --rounds  : ラウンド数 (省略時は 人数-1)

    途中棄権 (ラウンド 4 から 3 番と 7 番が抜ける):
    doubles-scheduler -p 12 -c 3 -r 10 --withdraw-at 4 --withdraw 3 7

    --interactive で Enter キーを押すたびに次の試合を提示し、
    Ctrl-C で終了します。

プレーヤー番号とラウンド番号は 1 始まり。
"""

import argparse
import logging
import sys

from doubles_scheduler.adapter import TournamentAdapter
from doubles_scheduler.config import SchedulerConfig
from doubles_scheduler.engine import DoublesScheduler
from doubles_scheduler.errors import SchedulerError
from doubles_scheduler.stats import Statistics, player_table


# ─────────────────────────────────────────────────────────
#  表示
# ─────────────────────────────────────────────────────────
def print_round(converted: dict, no: int):
    print(f"\n=== Round {no} ===")
    for match in converted["matchs"]:
        a = "-".join(map(str, match["equipe1"]))
        b = "-".join(map(str, match["equipe2"]))
        print(f"Court {match['terrain']}: {a}  vs  {b}")
    rest = converted["byes"]
    if rest:
        print("Rest: " + ", ".join(map(str, rest)))
    print("-" * 32)


def print_stats(stats: Statistics, valid: bool):
    print(f"\nラウンド: {stats.rounds_generated} / {stats.rounds_requested}")
    print(f"休み: min={stats.bye_min}, max={stats.bye_max}, 差={stats.bye_spread}")
    print(f"連続休み: {stats.consecutive_bye_repeats}")
    print(
        f"同じパートナー最大: {stats.max_partner_repeat} "
        f"(違反 {stats.partner_violation_count})"
    )
    print(
        f"同じ相手最大: {stats.max_opponent_repeat} "
        f"(違反 {stats.opponent_violation_count})"
    )
    if stats.relaxed_rounds:
        print(f"ペア制約を緩和したラウンド: {stats.relaxed_rounds}")
    print("判定: " + ("OK" if valid else "NG"))


def run_interactive(sched: DoublesScheduler, adapter: TournamentAdapter) -> int:
    print("準備完了。Enter で次の試合を生成、Ctrl+C で終了します。")
    try:
        while True:
            input()
            rnd = sched.next_round()
            print_round(adapter.convert_round(rnd), len(sched.rounds))
    except KeyboardInterrupt:
        print("\nスケジューラを終了しました。お疲れさまでした。")
    except SchedulerError as exc:
        print(f"エラー: {exc}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Doubles round scheduler")
    parser.add_argument("-p", "--players", type=int, required=True, help="number of players (>= 4)")
    parser.add_argument("-c", "--courts", type=int, required=True, help="number of courts (>= 1)")
    parser.add_argument("-r", "--rounds", type=int, default=None, help="rounds to generate (default: players - 1)")
    parser.add_argument("--first-court", type=int, default=1, help="number of the first court")
    parser.add_argument("--withdraw-at", type=int, default=None, metavar="ROUND",
                        help="first round (1-based) to regenerate after withdrawals")
    parser.add_argument("--withdraw", type=int, nargs="+", default=[], metavar="PLAYER",
                        help="players (1-based) leaving the tournament")
    parser.add_argument("--new-total", type=int, default=None, help="new total number of rounds after withdrawal")
    parser.add_argument("--exact", action="store_true", help="solve partner pairing with CP-SAT")
    parser.add_argument("--interactive", action="store_true", help="generate one round per Enter key")
    parser.add_argument("--table", action="store_true", help="print the per-player table")
    parser.add_argument("--debug", action="store_true")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.withdraw and args.withdraw_at is None:
        parser.error("--withdraw には --withdraw-at が必要です")
    if args.interactive and (args.withdraw_at is not None or args.rounds is not None or args.new_total is not None):
        parser.error("--interactive は -r / --withdraw-at / --new-total と併用できません")

    adapter = TournamentAdapter(range(1, args.players + 1), first_court=args.first_court)
    try:
        config = SchedulerConfig(exact_pairing=args.exact)
        if args.interactive:
            return run_interactive(DoublesScheduler(args.players, args.courts, config=config), adapter)

        sched = adapter.schedule(args.courts, args.rounds, config)
        shown_from = 0
        if args.withdraw_at is not None:
            leaving = [adapter.index_of(p) for p in args.withdraw]
            result = sched.withdraw(args.withdraw_at - 1, leaving, args.new_total)
            print(result.message)
            shown_from = args.withdraw_at - 1
    except ValueError as exc:
        # PreconditionError もここ。list.index の失敗は存在しない選手番号
        print(f"エラー: {exc}", file=sys.stderr)
        return 2
    except SchedulerError as exc:
        print(f"エラー: {exc}", file=sys.stderr)
        return 1

    for no, rnd in enumerate(sched.rounds[shown_from:], start=shown_from + 1):
        print_round(adapter.convert_round(rnd), no)
    print_stats(sched.statistics(), sched.is_valid())
    if args.table:
        table = player_table(sched.state, sched.active_players())
        table.index = table.index + 1
        print()
        print(table.to_string())
    return 0


if __name__ == "__main__":
    sys.exit(main())
