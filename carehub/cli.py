"""
Interactive operator console for the CareHub core.
Act as a caller identity and inspect or drive the shared records with RBAC
enforcement.
"""

from datetime import datetime, timezone

from carehub.config import CareSettings
from carehub.database import init_engine
from carehub.errors import InvalidTransition, NotFound, PermissionDenied, ValidationError
from carehub.models import ANONYMOUS, ConsultationStatus
from carehub.service import CareService

STATUS_COMMANDS = {
    "confirm": ConsultationStatus.CONFIRMED,
    "complete": ConsultationStatus.COMPLETED,
    "cancel": ConsultationStatus.CANCELLED,
}

HELP_TEXT = (
    "Commands: role, profile, vip, providers, fitness, plans, consultations,\n"
    "          confirm <id>, complete <id>, cancel <id>, help, quit"
)


def format_time(ns: int) -> str:
    """Render a nanosecond timestamp as a UTC date/time string."""
    return datetime.fromtimestamp(ns / 1_000_000_000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def run_command(service: CareService, caller: str, line: str) -> None:
    """Execute one console command as *caller*, printing the outcome."""
    parts = line.split()
    cmd, args = parts[0].lower(), parts[1:]

    if cmd == "help":
        print(HELP_TEXT)

    elif cmd == "role":
        print(f"Role: {service.get_caller_role(caller).value}")

    elif cmd == "profile":
        profile = service.get_caller_profile(caller)
        if profile is None:
            print("(no profile saved)")
        else:
            print(f"{profile.name}, age {profile.age}, VIP={profile.is_vip}")
            if profile.preferences:
                print(f"Preferences: {profile.preferences}")

    elif cmd == "vip":
        print(f"VIP: {service.get_vip_status(caller)}")

    elif cmd == "providers":
        providers = service.list_providers()
        if not providers:
            print("(no providers)")
        for p in providers:
            mode = "online" if p.online else "in person"
            print(f"  {p.id:<12} {p.name:<24} {p.specialization:<18} {p.location} ({mode})")

    elif cmd == "fitness":
        listings = service.list_fitness_listings()
        if not listings:
            print("(no fitness listings)")
        for item in listings:
            print(f"  {item.id:<12} {item.name:<24} ${item.cost:.2f}  {item.duration:g} min")

    elif cmd == "plans":
        plans = service.list_membership_plans()
        if not plans:
            print("(no membership plans)")
        for plan in plans:
            print(f"  {plan.id:<12} {plan.name:<24} ${plan.price:.2f}  {plan.duration:g} months")

    elif cmd == "consultations":
        records = service.get_consultations(caller)
        if not records:
            print("(no consultations)")
        for c in records:
            print(f"  {c.id:<6} {c.status.value:<10} provider={c.provider_id} "
                  f"{format_time(c.time)} {c.modality}")

    elif cmd in STATUS_COMMANDS:
        if len(args) != 1:
            print(f"Usage: {cmd} <consultation id>")
            return
        service.update_consultation_status(caller, args[0], STATUS_COMMANDS[cmd])
        print(f"Consultation {args[0]} is now {STATUS_COMMANDS[cmd].value}.")

    else:
        print(f"Unknown command '{cmd}'. Type 'help' for the list.")


def run_console(service: CareService, caller: str) -> None:
    """REPL loop: read commands until 'quit' or EOF."""
    while True:
        try:
            line = input("\ncarehub> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not line:
            continue
        if line.lower() in {"quit", "exit"}:
            print("Goodbye.")
            break

        try:
            run_command(service, caller, line)
        except PermissionDenied as e:
            print(f"[DENIED] {e}")
        except NotFound as e:
            print(f"[NOT FOUND] {e}")
        except InvalidTransition as e:
            print(f"[INVALID] {e}")
        except ValidationError as e:
            print(f"[REJECTED] {e}")


def main():
    print("=== CareHub Core: Operator Console ===\n")

    engine = init_engine()
    service = CareService.from_engine(engine, CareSettings.from_env())

    # ── Identity ─────────────────────────────────────────────────────
    try:
        caller = input("Act as caller identity (blank for anonymous, 'quit' to exit): ").strip()
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return

    if caller.lower() in {"quit", "exit"}:
        print("Goodbye.")
        return
    caller = caller or ANONYMOUS

    print(f"\n[auth] Acting as: {caller} (role={service.get_caller_role(caller).value})")
    print(f"[auth] Policy: {service.guard.policy_for(caller).notes}")
    print(HELP_TEXT)

    run_console(service, caller)


if __name__ == "__main__":
    main()
