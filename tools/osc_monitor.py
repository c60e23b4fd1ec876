"""
Print every OSC message arriving on a UDP port.

Stand-in for the visual host while testing the bridge:

    python tools/osc_monitor.py --port 9000 --filter /reactive/beat
"""
import argparse

from pythonosc import dispatcher, osc_server


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=9000)
    parser.add_argument("--filter", default="/reactive/*", help="OSC address pattern")
    args = parser.parse_args()

    def on_message(address: str, *values) -> None:
        print(f"{address:32s} {values}")

    disp = dispatcher.Dispatcher()
    disp.map(args.filter, on_message)

    server = osc_server.BlockingOSCUDPServer((args.host, args.port), disp)
    print(f"listening on {args.host}:{args.port} for {args.filter}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
