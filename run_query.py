#!/usr/bin/env python3
"""
Script to reindex, query and inspect a running OneNote RAG API.
"""
import requests
import json
import argparse

def reindex(api_url):
    """Rescan the document folder and rebuild the index."""
    print("Reindexing local notes...")
    response = requests.post(f"{api_url}/index", timeout=600)
    if response.status_code != 200:
        print(f"Error: {response.status_code}")
        print(response.text)
        return

    result = response.json()
    report = result["report"]
    print(f"Indexed {report['documents']} notes into {report['upserted']}/{report['chunks']} chunks")
    if report["failed_batches"]:
        print(f"Failed batches: {report['failed_batches']}")

def ask(question, api_url):
    """
    Ask a question and print the answer with its sources.

    Args:
        question: The question to ask
        api_url: Base URL of the API
    """
    response = requests.post(f"{api_url}/chat", json={"message": question}, timeout=120)
    if response.status_code != 200:
        print(f"Error: {response.status_code}")
        print(response.text)
        return

    result = response.json()
    print(result["answer"])
    print(f"\nConfidence: {result['confidence']:.2f}")
    for i, source in enumerate(result["sources"], 1):
        print(f"  [{i}] {source['title']} ({source['file_type']}) - {source['confidence']:.2f}")

def show_stats(api_url):
    response = requests.get(f"{api_url}/index", timeout=30)
    if response.status_code != 200:
        print(f"Error: {response.status_code}")
        print(response.text)
        return
    print(json.dumps(response.json(), indent=2))

def main():
    parser = argparse.ArgumentParser(description="Talk to the OneNote RAG API")
    parser.add_argument("--api-url", default="http://localhost:8000", help="Base URL of the API")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("reindex", help="Rebuild the index from the document folder")
    ask_parser = subparsers.add_parser("ask", help="Ask a question")
    ask_parser.add_argument("question", help="The question to ask")
    subparsers.add_parser("stats", help="Show index statistics and health")

    args = parser.parse_args()

    if args.command == "reindex":
        reindex(args.api_url)
    elif args.command == "ask":
        ask(args.question, args.api_url)
    else:
        show_stats(args.api_url)

if __name__ == "__main__":
    main()
