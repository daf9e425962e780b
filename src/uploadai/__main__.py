import argparse
import asyncio
import sys
from pathlib import Path

import dotenv
import httpx
dotenv.load_dotenv()


def _error_message(resp: httpx.Response) -> str:
    try:
        return resp.json()["error"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {resp.status_code}"


async def _upload(video: Path, prompt: str) -> str | None:
    from uploadai import transcode
    from uploadai.client import ApiClient
    from uploadai.session import UploadSession

    async with ApiClient() as api:
        session = UploadSession(transcode.Transcoder(), api)
        session.select_file(video)
        try:
            return await session.submit(prompt)
        finally:
            session.close()


async def _generate(video_id: str, prompt: str, temperature: float | None):
    from uploadai.client import ApiClient

    async with ApiClient() as api:
        async for chunk in api.generate(video_id, prompt, temperature):
            print(chunk, end="", flush=True)
    print()


async def _prompts():
    from uploadai.client import ApiClient

    async with ApiClient() as api:
        for p in await api.prompts():
            print(f"{p['id']}: {p['title']}")


def main():
    parser = argparse.ArgumentParser(prog="uploadai")
    sub = parser.add_subparsers(dest="command")

    p_serve = sub.add_parser("serve")
    p_serve.add_argument("--host", default="0.0.0.0")
    p_serve.add_argument("--port", type=int, default=3333)

    p_convert = sub.add_parser("convert", help="Convert a video to a compact mp3")
    p_convert.add_argument("path", type=Path)
    p_convert.add_argument("--output", "-o", type=Path, default=None)

    p_upload = sub.add_parser("upload", help="Convert, upload and transcribe a video")
    p_upload.add_argument("path", type=Path)
    p_upload.add_argument("--prompt", default="", help="Comma-separated keywords mentioned in the video")

    p_generate = sub.add_parser("generate", help="Stream a completion seeded by a transcription")
    p_generate.add_argument("video_id")
    group = p_generate.add_mutually_exclusive_group(required=True)
    group.add_argument("--prompt", help="Prompt containing the {transcription} placeholder")
    group.add_argument("--template", help="Id of a built-in prompt template")
    p_generate.add_argument("--temperature", type=float, default=None)

    sub.add_parser("prompts", help="List built-in prompt templates")

    args = parser.parse_args()

    from uploadai import runtime

    if args.command == "serve":
        runtime.require(needs_transcriber=True, needs_anthropic=True)
        import uvicorn
        from uploadai import server
        app = server.create_app()
        uvicorn.run(app, host=args.host, port=args.port)

    elif args.command == "convert":
        runtime.require(needs_ffmpeg=True)
        from uploadai import errors, transcode
        out = args.output or args.path.with_suffix(".mp3")
        try:
            asyncio.run(transcode.Transcoder().convert(args.path, out))
        except errors.TranscodeError as exc:
            print(f"Conversion failed: {exc}", file=sys.stderr)
            sys.exit(1)

    elif args.command == "upload":
        runtime.require(needs_ffmpeg=True)
        video_id = asyncio.run(_upload(args.path, args.prompt))
        if video_id is None:
            sys.exit(1)
        print(video_id)

    elif args.command == "generate":
        prompt = args.prompt
        if args.template:
            from uploadai import prompts
            template = prompts.get(args.template)
            if template is None:
                print(f"Unknown template: {args.template}", file=sys.stderr)
                sys.exit(1)
            prompt = template.template
        try:
            asyncio.run(_generate(args.video_id, prompt, args.temperature))
        except httpx.HTTPStatusError as exc:
            print(f"Generation failed: {_error_message(exc.response)}", file=sys.stderr)
            sys.exit(1)

    elif args.command == "prompts":
        asyncio.run(_prompts())

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
