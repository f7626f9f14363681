
import json, sys
from nacl.signing import SigningKey
from walletauth.util import b58d, b58e

def sign(key_path: str, message: str) -> str:
    with open(key_path, "r", encoding="utf-8") as f:
        key = json.load(f)
    sk = SigningKey(b58d(key["secret_seed_b58"]))
    return b58e(sk.sign(message.encode("utf-8")).signature)

def main(key_path: str, message_path: str):
    if message_path == "-":
        message = sys.stdin.read()
    else:
        with open(message_path, "r", encoding="utf-8") as f:
            message = f.read()
    # the message must match the server's bytes exactly; editors add a trailing newline
    print(sign(key_path, message.rstrip("\n")))

if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python tools/sign_challenge.py <wallet_key.json> <message.txt|->"); raise SystemExit(2)
    main(sys.argv[1], sys.argv[2])
