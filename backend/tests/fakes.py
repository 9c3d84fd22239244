"""Fake boto3 clients for RDS and S3."""


class FakeRdsClient:
    """Stands in for boto3's RDS client.

    ``instance_pages`` and ``log_file_pages`` are lists of pages; each call
    returns one page and a marker for the next. ``contents`` maps
    (instance_id, log_file_name) to file text, served line by line.
    """

    def __init__(self, instance_pages=None, log_file_pages=None, contents=None):
        self.instance_pages = instance_pages or [[]]
        self.log_file_pages = log_file_pages or {}
        self.contents = contents or {}
        self.errors = {}
        self.calls = []

    def _maybe_fail(self, method, key=None):
        error = self.errors.get((method, key)) or self.errors.get(method)
        if error:
            raise error

    @staticmethod
    def _page(pages, marker):
        index = int(marker.split("-")[1]) if marker else 0
        resp = {"items": pages[index]}
        if index + 1 < len(pages):
            resp["Marker"] = f"page-{index + 1}"
        return resp

    def describe_db_instances(self, Marker=None):
        self.calls.append(("describe_db_instances", Marker))
        self._maybe_fail("describe_db_instances")
        page = self._page(self.instance_pages, Marker)
        page["DBInstances"] = page.pop("items")
        return page

    def describe_db_log_files(self, DBInstanceIdentifier, FilenameContains=None, Marker=None):
        self.calls.append(("describe_db_log_files", DBInstanceIdentifier, FilenameContains, Marker))
        self._maybe_fail("describe_db_log_files", DBInstanceIdentifier)
        pages = self.log_file_pages.get(DBInstanceIdentifier, [[]])
        page = self._page(pages, Marker)
        entries = page.pop("items")
        if FilenameContains:
            entries = [entry for entry in entries if FilenameContains in entry["LogFileName"]]
        page["DescribeDBLogFiles"] = entries
        return page

    def download_db_log_file_portion(self, DBInstanceIdentifier, LogFileName, Marker, NumberOfLines):
        self.calls.append(("download_db_log_file_portion", DBInstanceIdentifier, LogFileName, Marker, NumberOfLines))
        self._maybe_fail("download_db_log_file_portion", NumberOfLines)
        text = self.contents[(DBInstanceIdentifier, LogFileName)]
        if NumberOfLines == 0:
            return {"LogFileData": text, "Marker": "0", "AdditionalDataPending": False}

        lines = text.splitlines(keepends=True)
        start = int(Marker)
        end = start + NumberOfLines
        return {
            "LogFileData": "".join(lines[start:end]),
            "Marker": str(min(end, len(lines))),
            "AdditionalDataPending": end < len(lines),
        }


class FakeS3Client:
    def __init__(self):
        self.objects = {}
        self.put_calls = []
        self.error = None

    def put_object(self, Bucket, Key, Body, ContentType):
        self.put_calls.append((Bucket, Key))
        if self.error:
            raise self.error
        self.objects[(Bucket, Key)] = {"Body": Body, "ContentType": ContentType}
        return {"ETag": "etag"}


def log_file_entry(name, size=100, last_written=1000):
    return {"LogFileName": name, "Size": size, "LastWritten": last_written}
