import contextlib
import threading
import time
import typing

import pytest
import uvicorn
from fastapi import FastAPI, Form, Request, UploadFile

file_app = FastAPI()


@file_app.post("/file")
def upload_single_file(image: UploadFile, foo: typing.Optional[str] = Form(None)):
    content = image.file.read()
    return {
        "foo": foo,
        "filename": image.filename,
        "content_type": image.content_type,
        "size": len(content),
    }


@file_app.post("/echo_form")
async def echo_form(request: Request):
    form = await request.form()
    fields = []
    for name, value in form.multi_items():
        if isinstance(value, str):
            fields.append({"name": name, "value": value})
        else:
            content = await value.read()
            fields.append(
                {
                    "name": name,
                    "filename": value.filename,
                    "content_type": value.content_type,
                    "value": content.decode("utf-8", errors="replace"),
                }
            )
    return {"fields": fields}


class FileServer(uvicorn.Server):
    def install_signal_handlers(self):
        pass

    @contextlib.contextmanager
    def run_in_thread(self):
        thread = threading.Thread(target=self.run)
        thread.start()
        try:
            while not self.started:
                time.sleep(1e-3)
            yield
        finally:
            self.should_exit = True
            thread.join()

    @property
    def url(self):
        return f"http://{self.config.host}:{self.config.port}"


@pytest.fixture(scope="session")
def file_server():
    config = uvicorn.Config(file_app, host="127.0.0.1", port=2953, log_level="info")
    server = FileServer(config=config)
    with server.run_in_thread():
        yield server
