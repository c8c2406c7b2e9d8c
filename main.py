from mtgfetch.CLI import extract


if __name__ == "__main__":
    # Fetches the MTGJSON AllSets bundle into the current directory by default.
    # Point it at a local server for testing:
    #     python main.py --url http://127.0.0.1:8000/AllSets.json.tar.gz -o extracted
    extract()
