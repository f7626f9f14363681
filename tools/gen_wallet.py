
import argparse, json, os
from nacl.signing import SigningKey
from walletauth.util import b58e

def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate an Ed25519 wallet keypair for local testing")
    parser.add_argument("--out", default="secrets/wallet_key.json", help="where to write the secret seed")
    parser.add_argument("--whitelist", help="append the address to this whitelist JSON file")
    args = parser.parse_args(argv)

    sk = SigningKey.generate()
    address = b58e(bytes(sk.verify_key))

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump({"address": address, "secret_seed_b58": b58e(bytes(sk))}, f, indent=2)

    if args.whitelist:
        data = {"addresses": []}
        if os.path.exists(args.whitelist):
            with open(args.whitelist, "r", encoding="utf-8") as f:
                data = json.load(f)
        if address not in data.setdefault("addresses", []):
            data["addresses"].append(address)
        os.makedirs(os.path.dirname(args.whitelist) or ".", exist_ok=True)
        with open(args.whitelist, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    print(address)

if __name__ == "__main__":
    main()
