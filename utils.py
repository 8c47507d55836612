import httpx

def httpx_raise_on_err(err_class):
    """
    Returns an httpx event hook that turns an error status from the file server
    into err_class, naming the request that failed.
    """
    def hook(response):
        if response.is_error:
            request = response.request
            raise err_class(f'{request.method} {request.url.path} failed: '
                            f'server answered {response.status_code} '
                            f'{response.reason_phrase}')
    return hook
